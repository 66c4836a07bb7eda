from dataclasses import dataclass, field
from typing import Dict, Iterator, List


@dataclass
class ParsedCsv:
    headers: List[str]
    rows: List[List[str]] = field(default_factory=list)

    def records(self) -> Iterator[Dict[str, str]]:
        """Yield each row keyed by header. Missing trailing fields become ""."""
        for row in self.rows:
            yield {
                h: (row[i] if i < len(row) else "")
                for i, h in enumerate(self.headers)
            }


def parse_csv_line(line: str) -> List[str]:
    """
    Split one CSV line on commas.

    Double-quoted fields may contain commas; "" inside quotes is a literal quote.
    Every field is stripped.
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    n = len(line)

    while i < n:
        ch = line[i]
        if in_quotes:
            if ch == '"':
                if i + 1 < n and line[i + 1] == '"':
                    current.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                current.append(ch)
        elif ch == '"':
            in_quotes = True
        elif ch == ",":
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1

    fields.append("".join(current).strip())
    return fields


def parse_csv_text(text: str) -> ParsedCsv:
    """
    Parse raw CSV text into headers + rows.

    - CRLF / CR / LF are all line breaks
    - blank lines are skipped
    - no column-count validation (ragged rows pass through)
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")

    header_idx = 0
    while header_idx < len(lines) and lines[header_idx].strip() == "":
        header_idx += 1
    if header_idx >= len(lines):
        return ParsedCsv(headers=[])

    headers = parse_csv_line(lines[header_idx])
    rows: List[List[str]] = []
    for raw in lines[header_idx + 1:]:
        line = raw.strip()
        if line == "":
            continue
        rows.append(parse_csv_line(line))

    return ParsedCsv(headers=headers, rows=rows)
