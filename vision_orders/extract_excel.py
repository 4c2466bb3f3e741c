"""
Tabular order extractor (CSV / Excel).
- Reads every sheet without assuming the header is on the first row.
- Locates the header row by synonym matching (Producto / Cantidad / Cliente ...).
- Title rows above the header are kept in raw_text and searched for the client.
- Values are machine-readable already: no OCR and no date pass.
- A sheet without item rows comes back degraded so a human reviews it.
"""

import io
import logging
import math
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd

from vision_orders.extract_ocr import parse_client_name
from vision_orders.items import build_items, first_client, map_columns, rows_to_item_rows
from vision_orders.models import CleanParse, DegradedParse, OrderTable, ParsedOrder, ParseResult

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = ('.xlsx', '.xlsm', '.xls')
HEADER_SCAN_ROWS = 10
CSV_DELIMITERS = (",", ";", "\t")
XLSX_MAGIC = b"PK\x03\x04"


def cell_to_str(v) -> str:
    if v is None:
        return ''
    if isinstance(v, float):
        if math.isnan(v):
            return ''
        if v.is_integer():
            return str(int(v))
    if isinstance(v, (datetime, pd.Timestamp)):
        return v.date().isoformat()
    if isinstance(v, date):
        return v.isoformat()
    return str(v).strip()


def frame_to_rows(df: pd.DataFrame) -> List[List[str]]:
    rows = [[cell_to_str(v) for v in rec] for rec in df.itertuples(index=False, name=None)]
    return [r for r in rows if any(r)]


def is_excel(file_name: Optional[str], mime_type: Optional[str], buffer: Optional[bytes] = None) -> bool:
    if buffer and buffer.startswith(XLSX_MAGIC):
        return True
    suffix = Path(file_name or '').suffix.lower()
    if suffix in EXCEL_EXTENSIONS:
        return True
    mime = (mime_type or '').lower()
    return 'spreadsheet' in mime or 'excel' in mime


def decode_text(buffer: bytes) -> str:
    try:
        return buffer.decode("utf-8-sig")
    except UnicodeDecodeError:
        # spreadsheets exported from Spanish Excel installs are often latin-1
        return buffer.decode("latin-1")


def sniff_delimiter(text: str) -> str:
    """Delimiter of , ; tab seen most often on one of the first non-blank lines."""
    lines = [ln for ln in text.splitlines() if ln.strip()][:HEADER_SCAN_ROWS]
    counts = {d: max([ln.count(d) for ln in lines] or [0]) for d in CSV_DELIMITERS}
    best = max(counts, key=counts.get)
    return best if counts[best] else ","


def read_frames(buffer: bytes, file_name: Optional[str], mime_type: Optional[str]) -> List[pd.DataFrame]:
    if is_excel(file_name, mime_type, buffer):
        sheets = pd.read_excel(io.BytesIO(buffer), sheet_name=None, header=None, dtype=object)
        return list(sheets.values())
    text = decode_text(buffer)
    sep = sniff_delimiter(text)
    # title rows are usually narrower than the table; size the frame on the widest line
    width = max([ln.count(sep) + 1 for ln in text.splitlines() if ln.strip()] or [1])
    df = pd.read_csv(io.StringIO(text), sep=sep, header=None, names=range(width), dtype=str,
                     keep_default_na=False, engine="python")
    # quoted separators overcount the width; those columns come back all-NaN
    return [df.dropna(axis=1, how="all")]


def find_header_row(rows: List[List[str]]) -> Optional[int]:
    for i, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        if 'product' in map_columns(row):
            return i
    return None


def pick_table(frames: List[pd.DataFrame]) -> Tuple[List[str], List[List[str]], List[str]]:
    """Return (headers, data rows, title lines) from the first sheet with a product header."""
    parsed = [frame_to_rows(df) for df in frames]
    for rows in parsed:
        idx = find_header_row(rows)
        if idx is not None:
            titles = [' '.join(c for c in r if c) for r in rows[:idx]]
            return rows[idx], rows[idx + 1:], titles
    for rows in parsed:
        if rows:
            return rows[0], rows[1:], []
    return [], [], []


def table_as_text(headers, rows, titles) -> str:
    lines = list(titles)
    lines += ['\t'.join(r) for r in [headers] + rows if r]
    return '\n'.join(lines)


def extract_tabular(buffer: bytes, file_name: Optional[str] = None, mime_type: Optional[str] = None) -> ParseResult:
    try:
        frames = read_frames(buffer, file_name, mime_type)
    except Exception as e:
        logger.warning(f"Tabular read failed for {file_name or '<buffer>'}: {e}")
        reason = f"Could not read the spreadsheet ({e}); manual review required."
        return DegradedParse(ParsedOrder(client='', items=[], raw_text='', notes=reason), reason)

    headers, rows, titles = pick_table(frames)
    width = max([len(headers)] + [len(r) for r in rows]) if headers else 0
    headers = headers + [''] * (width - len(headers))
    rows = [r + [''] * (width - len(r)) for r in rows]

    item_rows = rows_to_item_rows(headers, rows)
    client = first_client(item_rows) or parse_client_name('\n'.join(titles), explicit_only=True)
    order = ParsedOrder(
        client=client,
        items=build_items(item_rows, client),
        raw_text=table_as_text(headers, rows, titles),
        table=OrderTable(headers=headers, rows=rows),
    )
    logger.debug(f"Tabular parse of {file_name or '<buffer>'}: {len(order.items)} items")
    if not order.items:
        if order.raw_text:
            reason = "The spreadsheet was read but no line items could be identified; manual review required."
        else:
            reason = "The spreadsheet is empty; manual review required."
        order.notes = reason
        return DegradedParse(order, reason)
    return CleanParse(order)
