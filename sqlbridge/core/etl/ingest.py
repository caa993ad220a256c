# sqlbridge/core/etl/ingest.py
"""
INGEST MODULE - Turn an uploaded file into Records

Purpose:
    1. Decode the base64 payload sent by the caller
    2. Parse CSV text into Records (header line = column names)
    3. Work out which table the rows belong to

No database access happens here. Everything that can go wrong with the
input itself fails in this module, before a connection is taken.

Data Flow:
    base64 → decode_file_data() → read_csv_file() → [Record, Record, ...]
    fileName/tableName → resolve_table_name() → Identifier
"""

import base64
import binascii
import csv
import io
import logging
import re
from typing import Dict, List, Optional

from sqlbridge.core.identifiers import Identifier

logger = logging.getLogger(__name__)


# One decoded row: column name -> text value, in header order.
# Values are never typed; "42" and "2025-01-15" stay strings.
Record = Dict[str, Optional[str]]


class CsvDecodeError(ValueError):
    """The upload could not be turned into Records."""


# ============================================================================
# STEP 1: DECODE THE PAYLOAD
# ============================================================================


def decode_file_data(file_data: str) -> bytes:
    """
    Decode the base64 `fileData` argument into raw bytes.

    Line breaks and spaces inside the payload are ignored (some clients wrap
    base64 at 76 chars); anything else outside the base64 alphabet is an error.
    """
    compact = "".join(file_data.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CsvDecodeError(f"fileData is not valid base64: {e}") from e


# ============================================================================
# STEP 2: PARSE CSV
# ============================================================================


def read_csv_file(file_content: bytes) -> List[Record]:
    """
    Read CSV bytes and return one Record per data line.

    Handles:
        - UTF-8 with or without a byte order mark
        - Blank lines (skipped)
        - Whitespace around headers and unquoted values (trimmed)
        - Quoted values (kept exactly, including inner spaces)

    Rejects:
        - Bytes that are not UTF-8
        - Text between a closing quote and the next comma
        - Duplicate or empty header names
        - Rows with more or fewer fields than the header

    Args:
        file_content: Raw CSV bytes

    Returns:
        List of Records, in file order

    Example:
        Input CSV:
            id,name,city
            1,Alice,Tashkent
            2,Bob,Samarkand

        Output:
            [
                {"id": "1", "name": "Alice", "city": "Tashkent"},
                {"id": "2", "name": "Bob", "city": "Samarkand"}
            ]
    """
    try:
        text = file_content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CsvDecodeError(f"File is not valid UTF-8: {e}") from e

    # csv.reader finds record boundaries (quoted fields may span lines);
    # the raw lines of each record are kept to see which fields were quoted
    consumed: List[str] = []

    def _lines():
        for line in io.StringIO(text):
            consumed.append(line)
            yield line

    reader = csv.reader(_lines())
    header: Optional[List[str]] = None
    records: List[Record] = []

    try:
        for row in reader:
            raw = "".join(consumed)
            consumed.clear()

            if _is_blank(row):
                continue

            if header is None:
                header = _read_header(row)
                continue

            if len(row) != len(header):
                raise CsvDecodeError(
                    f"Line {reader.line_num}: expected {len(header)} fields, got {len(row)}"
                )

            values = _split_fields(raw, reader.line_num)
            if len(values) != len(header):
                raise CsvDecodeError(
                    f"Line {reader.line_num}: expected {len(header)} fields, got {len(values)}"
                )

            records.append(dict(zip(header, values)))
    except csv.Error as e:
        raise CsvDecodeError(f"Line {reader.line_num}: {e}") from e

    logger.info(f"Read {len(records)} rows from CSV")
    return records


def _split_fields(raw: str, line_num: int) -> List[str]:
    """
    Field values of one raw CSV record.

    Unquoted fields are trimmed; quoted fields keep their content exactly,
    only the whitespace outside the quotes is dropped.

    Example:
        ' 1 ,"  padded  " '  ->  ["1", "  padded  "]
    """
    raw = raw.rstrip("\r\n")
    values: List[str] = []
    pos, end = 0, len(raw)

    while True:
        while pos < end and raw[pos] in " \t":
            pos += 1

        if pos < end and raw[pos] == '"':
            pos += 1
            chunks = []
            while True:
                close = raw.find('"', pos)
                if close == -1:
                    raise CsvDecodeError(f"Line {line_num}: unterminated quoted field")
                chunks.append(raw[pos:close])
                if raw.startswith('""', close):
                    chunks.append('"')
                    pos = close + 2
                    continue
                pos = close + 1
                break
            values.append("".join(chunks))

            delimiter = raw.find(",", pos)
            trailing = raw[pos:] if delimiter == -1 else raw[pos:delimiter]
            if trailing.strip():
                raise CsvDecodeError(f"Line {line_num}: text after closing quote")
        else:
            delimiter = raw.find(",", pos)
            field = raw[pos:] if delimiter == -1 else raw[pos:delimiter]
            values.append(field.strip())

        if delimiter == -1:
            return values
        pos = delimiter + 1


def _is_blank(row: List[str]) -> bool:
    return not row or (len(row) == 1 and not row[0].strip())


def _read_header(row: List[str]) -> List[str]:
    header = [name.strip() for name in row]

    if any(not name for name in header):
        raise CsvDecodeError("Header contains an empty column name")

    seen = set()
    for name in header:
        if name in seen:
            raise CsvDecodeError(f"Header contains duplicate column name: {name}")
        seen.add(name)

    return header


# ============================================================================
# STEP 3: PICK THE TABLE
# ============================================================================


def table_name_from_file_name(file_name: str) -> str:
    """
    Derive a table name from an uploaded file name.

    Everything from the first dot on is dropped, then every character
    outside [A-Za-z0-9] becomes "_" and the result is lower-cased.

    Example:
        "My Report.csv"        ->  "my_report"
        "sales-2025.q1.csv"    ->  "sales_2025"
    """
    base_name = file_name.split(".")[0]
    return re.sub(r"[^A-Za-z0-9]", "_", base_name).lower()


def resolve_table_name(file_name: str, table_name: Optional[str] = None) -> Identifier:
    """Caller-supplied table name if given, otherwise one derived from the file."""
    return Identifier(table_name or table_name_from_file_name(file_name))
