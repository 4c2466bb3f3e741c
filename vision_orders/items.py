# vision_orders/items.py
# Line-item projection shared by the tabular, image and PDF paths:
# header synonym mapping, row -> item projection and quantity parsing.

import re
from collections import namedtuple
from typing import Dict, List, Optional, Sequence, Tuple

from vision_orders.models import OrderItem
from vision_orders.resolver import (
    build_item_id,
    resolve_label_type,
    sanitize_product_name,
    strip_diacritics,
)

# raw line item before ids and label types are assigned
ItemRow = namedtuple('ItemRow', ['product', 'quantity_text', 'client'])

HEADER_SYNONYMS: Dict[str, List[str]] = {
    'product': ['producto', 'productos', 'product', 'articulo', 'descripcion',
                'description', 'item', 'variedad', 'referencia', 'genero'],
    'quantity': ['cantidad', 'cant', 'quantity', 'qty', 'unidades', 'uds',
                 'peso', 'kg', 'kilos', 'bultos', 'cajas'],
    'client': ['cliente', 'client', 'customer', 'empresa', 'tienda', 'destino'],
}

COUNT_UNITS = {'u', 'ud', 'uds', 'unid', 'unidad', 'unidades', 'x', 'caja',
               'cajas', 'bandeja', 'bandejas', 'manojo', 'manojos', 'pcs'}

RE_NUMBER = re.compile(r'\d+(?:[.,]\d+)?')
RE_NUMBER_UNIT = re.compile(r'(\d+(?:[.,]\d+)?)\s*([A-Za-z]+)?')


def norm_colname(c) -> str:
    if c is None:
        return ""
    return re.sub(r'[^a-z0-9]', '', strip_diacritics(str(c)).strip().lower())


def map_columns(headers: Sequence) -> Dict[str, int]:
    """
    Map roles (product / quantity / client) to column indexes.
    Exact synonym matches win over containment; the first column wins per role.
    """
    normalized = [norm_colname(h) for h in headers]
    mapped: Dict[str, int] = {}
    for role, synonyms in HEADER_SYNONYMS.items():
        for i, nc in enumerate(normalized):
            if nc and nc in synonyms and i not in mapped.values():
                mapped[role] = i
                break
    for role, synonyms in HEADER_SYNONYMS.items():
        if role in mapped:
            continue
        for i, nc in enumerate(normalized):
            if i in mapped.values() or not nc:
                continue
            # short synonyms like 'kg' only count as exact matches
            if any(len(s) >= 4 and s in nc for s in synonyms):
                mapped[role] = i
                break
    return mapped


def parse_quantity(text: Optional[str]) -> Tuple[Optional[float], Optional[int], Optional[int]]:
    """
    Numeric projections of a quantity text: (quantity, units, cantidad).

    '12' -> (12.0, 12, 12); '2,5 kg' -> (2.5, None, None); '3 kg' -> (3.0, None, 3).
    Anything with zero or several numbers ('2 x 40g') is ambiguous -> all None.
    """
    text = (text or '').strip()
    if len(RE_NUMBER.findall(text)) != 1:
        return None, None, None
    m = RE_NUMBER_UNIT.search(text)
    value = float(m.group(1).replace(',', '.'))
    unit = (m.group(2) or '').lower()
    cantidad = int(value) if value.is_integer() else None
    units = cantidad if (not unit or unit in COUNT_UNITS) else None
    return value, units, cantidad


def cell(row: Sequence[str], idx: Optional[int]) -> str:
    if idx is None or idx >= len(row):
        return ''
    value = row[idx]
    return str(value).strip() if value is not None else ''


def rows_to_item_rows(headers: Sequence[str], rows: Sequence[Sequence[str]],
                      product_fallback_first_column=True) -> List[ItemRow]:
    cols = map_columns(headers)
    product_idx = cols.get('product')
    if product_idx is None:
        if not product_fallback_first_column or not headers:
            return []
        product_idx = 0
    quantity_idx = cols.get('quantity')
    client_idx = cols.get('client')

    out = []
    for row in rows:
        product = cell(row, product_idx)
        if not product:
            continue
        out.append(ItemRow(product, cell(row, quantity_idx), cell(row, client_idx)))
    return out


def first_client(item_rows: Sequence[ItemRow]) -> str:
    for r in item_rows:
        if r.client:
            return r.client
    return ''


def build_order_item(row: ItemRow, index: int, order_client: str = '') -> OrderItem:
    product_name = sanitize_product_name(row.product)
    client = row.client or order_client or ''
    quantity, units, cantidad = parse_quantity(row.quantity_text)
    return OrderItem(
        id=build_item_id(product_name, index),
        product_name=product_name,
        quantity_text=(row.quantity_text or '').strip(),
        client=client,
        label_type=resolve_label_type(client),
        include=True,
        quantity=quantity,
        units=units,
        cantidad=cantidad,
    )


def build_items(item_rows: Sequence[ItemRow], order_client: str = '') -> List[OrderItem]:
    """Ids follow the position in the merged list, so callers build once per document."""
    return [build_order_item(r, i, order_client) for i, r in enumerate(item_rows)]
