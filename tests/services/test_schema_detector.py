from app.models.enums import CsvFormat
from app.services.schema_detector import (
    REQUIRED_COLUMNS,
    auto_detect_mapping,
    detect_csv_format,
    find_column,
    validate_mapping,
)

FILLS_HEADERS = ["_id", "Fill ID", "Timestamp", "B/S", "Quantity", "Price", "Contract", "Product", "commission"]
ORDERS_HEADERS = ["orderId", "B/S", "Contract", "Product", "avgPrice", "filledQty", "Fill Time", "Status"]
PERFORMANCE_HEADERS = [
    "symbol", "qty", "buyPrice", "sellPrice", "pnl",
    "boughtTimestamp", "soldTimestamp", "duration",
]


def test_detects_each_export_shape():
    assert detect_csv_format(FILLS_HEADERS) == CsvFormat.FILLS
    assert detect_csv_format(ORDERS_HEADERS) == CsvFormat.ORDERS
    assert detect_csv_format(PERFORMANCE_HEADERS) == CsvFormat.PERFORMANCE
    assert detect_csv_format(["foo", "bar"]) == CsvFormat.UNKNOWN


def test_fills_without_commission_is_not_fills():
    headers = [h for h in FILLS_HEADERS if h != "commission"]
    assert detect_csv_format(headers) != CsvFormat.FILLS


def test_find_column_uses_alias_priority():
    assert find_column(["Symbol", "symbol"], REQUIRED_COLUMNS["symbol"]) == "symbol"
    assert find_column(["Contract"], REQUIRED_COLUMNS["symbol"]) == "Contract"
    assert find_column(["nope"], REQUIRED_COLUMNS["symbol"]) is None


def test_auto_detect_mapping_for_performance_export():
    result = auto_detect_mapping(PERFORMANCE_HEADERS + ["Commission"])

    assert result.complete
    assert result.mapping["buy_price"] == "buyPrice"
    assert result.mapping["bought_timestamp"] == "boughtTimestamp"
    assert result.mapping["commission"] == "Commission"


def test_auto_detect_mapping_reports_missing_required_fields():
    result = auto_detect_mapping(["Symbol", "P&L"])

    assert result.mapping == {"symbol": "Symbol", "pnl": "P&L"}
    assert "buy_price" in result.missing
    assert "duration" in result.missing
    assert not result.complete


def test_validate_mapping_drops_unknown_keys_and_absent_headers():
    headers = ["Sym", "In", "Out", "Result", "Lots", "Open", "Close", "Held"]
    mapping = {
        "symbol": "Sym",
        "buy_price": "In",
        "sell_price": "Out",
        "pnl": "Result",
        "qty": "Lots",
        "bought_timestamp": "Open",
        "sold_timestamp": "Close",
        "duration": "NotThere",
        "colour": "Sym",
    }

    result = validate_mapping(mapping, headers)

    assert "colour" not in result.mapping
    assert result.missing == ["duration"]
