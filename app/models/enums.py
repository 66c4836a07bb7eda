from enum import Enum


class TradeDirection(str, Enum):
    LONG = "Long"
    SHORT = "Short"


class ExecutionSide(str, Enum):
    BUY = "Buy"
    SELL = "Sell"


class CsvFormat(str, Enum):
    FILLS = "fills"
    ORDERS = "orders"
    PERFORMANCE = "performance"
    UNKNOWN = "unknown"


class ImportStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    UNKNOWN_FORMAT = "unknown_format"
    MAPPING_REQUIRED = "mapping_required"
    NO_TRADES = "no_trades"
