# vision_orders/transform.py
# Wire form (camelCase JSON) <-> dataclasses, for the CLI output files and the
# reviewer UI round trip.

from vision_orders.items import parse_quantity
from vision_orders.models import (
    BatchResult,
    LabelSuccess,
    OrderItem,
    OrderTable,
    ParsedOrder,
)
from vision_orders.resolver import build_item_id, normalize_label_type, sanitize_product_name

PROJECTION_KEYS = ("quantity", "units", "cantidad")


def item_to_dict(item: OrderItem) -> dict:
    out = {
        'id': item.id,
        'productName': item.product_name,
        'quantityText': item.quantity_text,
        'client': item.client,
        'labelType': item.label_type.value,
        'include': item.include,
    }
    for key, value in (('quantity', item.quantity), ('units', item.units), ('cantidad', item.cantidad)):
        if value is not None:
            out[key] = value
    return out


def item_from_dict(obj: dict, index: int = 0) -> OrderItem:
    product_name = sanitize_product_name(obj.get('productName'))
    include = obj.get('include', True)
    if isinstance(include, str):
        include = include.strip().lower() not in ('false', '0', 'no', '')
    quantity_text = str(obj.get('quantityText') or '').strip()
    if any(k in obj for k in PROJECTION_KEYS):
        quantity, units, cantidad = obj.get('quantity'), obj.get('units'), obj.get('cantidad')
    else:
        # edited rows (reviewer UI) only carry the text
        quantity, units, cantidad = parse_quantity(quantity_text)
    return OrderItem(
        id=obj.get('id') or build_item_id(product_name, index),
        product_name=product_name,
        quantity_text=quantity_text,
        client=str(obj.get('client') or '').strip(),
        label_type=normalize_label_type(obj.get('labelType')),
        include=bool(include),
        quantity=quantity,
        units=units,
        cantidad=cantidad,
    )


def order_to_dict(order: ParsedOrder) -> dict:
    out = {
        'client': order.client,
        'items': [item_to_dict(it) for it in order.items],
        'rawText': order.raw_text,
        'packingDate': order.packing_date,
    }
    if order.notes:
        out['notes'] = order.notes
    if order.table is not None:
        out['table'] = {'headers': order.table.headers, 'rows': order.table.rows}
    return out


def order_from_dict(obj: dict) -> ParsedOrder:
    table = obj.get('table')
    return ParsedOrder(
        client=obj.get('client') or '',
        items=[item_from_dict(it, i) for i, it in enumerate(obj.get('items') or [])],
        raw_text=obj.get('rawText') or '',
        notes=obj.get('notes') or None,
        table=OrderTable(headers=table['headers'], rows=table['rows']) if table else None,
        packing_date=obj.get('packingDate'),
    )


def batch_to_dict(batch: BatchResult) -> dict:
    results = []
    for entry in batch:
        row = {
            'index': entry.index,
            'productName': entry.item.product_name,
            'labelType': entry.label_type.value,
            'status': 'completed' if entry.ok else 'error',
        }
        if isinstance(entry.outcome, LabelSuccess):
            row['labels'] = [
                {'fileName': l.file_name, 'mimeType': l.mime_type, 'storageBucket': l.storage_bucket}
                for l in entry.outcome.labels
            ]
        else:
            row['error'] = entry.outcome.message
        results.append(row)
    return {'data': results, 'succeeded': len(batch.succeeded), 'failed': len(batch.failed)}
