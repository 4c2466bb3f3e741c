# vision_orders/extract_ocr.py
"""
Image order extractor.

The document-vision collaborator turns the image into text; this module then
- normalizes the OCR text (control chars, dashes, 'x' quantity markers),
- recovers the packing date,
- finds the client (explicit 'Cliente:' line, else a retailer name near the top),
- projects line items either from a header-led text table (same synonym
  mapping as spreadsheets) or, failing that, from per-line quantity patterns.

Items recovered from free text are best-effort; an order with text but no
items comes back degraded so a human reviews it.
"""

import logging
import re
from typing import List, Optional, Tuple

from vision_orders.dates import extract_packing_date, find_date_candidates
from vision_orders.items import ItemRow, build_items, first_client, map_columns, rows_to_item_rows
from vision_orders.models import CleanParse, DegradedParse, ParsedOrder, ParseResult
from vision_orders.resolver import strip_diacritics

logger = logging.getLogger(__name__)

RE_CELL_SPLIT = re.compile(r'\s*\|\s*|\t|\s*;\s*|\s{2,}')
RE_EXPLICIT_CLIENT = re.compile(r'^\s*(?:cliente|client|customer|destinatario)\s*[:\-]\s*(.+?)\s*$', re.I)
RE_TABLE_END = re.compile(r'^\s*(?:total|observaciones|notas|firma|recibido)\b', re.I)

RETAILER_KEYWORDS = ('mercadona', 'aldi', 'lidl', 'hiperdino', 'hiper', 'kanali')
CLIENT_SCAN_LINES = 8

QTY = r'\d+(?:[.,]\d+)?\s*(?:kgs?|grs?|g|uds?|u|unid(?:ades)?|cajas?|bandejas?|manojos?|x)?\.?'
PRODUCT = r"[A-Za-zÁÉÍÓÚÜÑáéíóúüñ][^\d:|;]{2,}?"
_item_patterns = [
    re.compile(rf'^(?P<qty>{QTY})\s+(?:de\s+)?(?P<product>{PRODUCT})\s*$', re.I),
    re.compile(rf'^(?P<product>{PRODUCT})\s*[-:x]?\s+(?P<qty>{QTY})\s*$', re.I),
]

# header/footer lines that look like "<words> <number>" but are not products
RE_NOT_AN_ITEM = re.compile(
    r'\b(?:pedido|albaran|factura|fecha|tel|telefono|fax|cif|nif|total|pagina|'
    r'order|invoice|date|page|cliente|client|lote|ref)\b|\bn[oº]\.?\s*\d', re.I)


# ---------------- Normalization ----------------
def normalize_ocr_text(text):
    if not text:
        return ""
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f]+', '', text)
    text = text.replace('–', '-').replace('—', '-')
    text = text.replace('×', 'x')
    text = re.sub(r'(\d)([xX])(?=\s|$)', r'\1 x', text)
    return '\n'.join(ln.strip() for ln in text.splitlines() if ln.strip())


def split_cells(line: str) -> List[str]:
    return [c.strip() for c in RE_CELL_SPLIT.split(line.strip().strip('|')) if c.strip()]


# ---------------- Client name ----------------
def parse_client_name(text: str, explicit_only=False) -> str:
    lines = [ln.strip() for ln in (text or '').splitlines() if ln.strip()]
    for ln in lines:
        m = RE_EXPLICIT_CLIENT.match(ln)
        if m:
            return m.group(1)
    if explicit_only:
        return ''
    for ln in lines[:CLIENT_SCAN_LINES]:
        low = strip_diacritics(ln).lower()
        if any(k in low for k in RETAILER_KEYWORDS):
            return ln
    return ''


# ---------------- Item parsing ----------------
def parse_text_table(lines: List[str]) -> Optional[List[ItemRow]]:
    """Header-led table in the OCR text; None when no header line is found."""
    for i, ln in enumerate(lines):
        headers = split_cells(ln)
        cols = map_columns(headers)
        if 'product' not in cols or len(cols) < 2:
            continue
        rows = []
        for row_line in lines[i + 1:]:
            if RE_TABLE_END.match(row_line):
                break
            cells = split_cells(row_line)
            if len(cells) >= 2:
                rows.append(cells)
        return rows_to_item_rows(headers, rows, product_fallback_first_column=False)
    return None


def try_parse_line_for_item(line: str) -> Optional[ItemRow]:
    if find_date_candidates(line) or RE_NOT_AN_ITEM.search(strip_diacritics(line)):
        return None
    for pat in _item_patterns:
        m = pat.match(line.strip().lstrip('-•*· '))
        if m:
            product = re.sub(r'\s{2,}', ' ', m.group('product')).strip(' -.')
            return ItemRow(product, m.group('qty').strip(), '')
    return None


def extract_rows_from_text(text: str) -> Tuple[str, List[ItemRow]]:
    """(client, item rows) from normalized OCR text."""
    lines = text.splitlines()
    item_rows = parse_text_table(lines)
    if not item_rows:
        item_rows = [r for r in (try_parse_line_for_item(ln) for ln in lines) if r]
    client = parse_client_name(text) or first_client(item_rows)
    return client, item_rows


def degraded(reason: str, raw_text: str = '', packing_date=None) -> DegradedParse:
    order = ParsedOrder(client='', items=[], raw_text=raw_text, notes=reason, packing_date=packing_date)
    return DegradedParse(order, reason)


def build_order_from_text(raw_text: str) -> ParseResult:
    normalized = normalize_ocr_text(raw_text)
    if not normalized:
        return degraded("No text was recognised in the document; manual review required.")

    client, item_rows = extract_rows_from_text(normalized)
    packing_date = extract_packing_date(normalized)
    if not item_rows:
        return degraded(
            "Text was recognised but no line items could be identified; manual review required.",
            raw_text=normalized, packing_date=packing_date)

    order = ParsedOrder(
        client=client,
        items=build_items(item_rows, client),
        raw_text=normalized,
        packing_date=packing_date,
    )
    return CleanParse(order)


def extract_from_image(buffer: bytes, vision, file_name: Optional[str] = None) -> ParseResult:
    try:
        raw_text = vision.recognize_text(buffer)
    except Exception as e:
        logger.error(f"Vision call failed for {file_name or '<image>'}: {e}")
        return degraded(f"Text recognition failed ({e}); enter the order manually.")
    return build_order_from_text(raw_text)
