# vision_orders/generate.py
"""
Label generation orchestrator.

Items are processed strictly in order, one renderer call each. A failing item
is recorded and the batch moves on, so the result always has one entry per
included item, in input order. File names derive from the sanitized product
name and the item's 1-based position, which keeps re-runs reproducible.
"""

import json
import logging
import mimetypes
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from vision_orders.models import (
    BatchEntry,
    BatchResult,
    DEFAULT_LABEL_TYPE,
    GeneratedLabel,
    InvalidInputError,
    LabelFailure,
    LabelSuccess,
    LabelType,
    OrderItem,
    RenderRequest,
)
from vision_orders.resolver import (
    default_variety,
    normalize_label_type,
    resolve_canonical_product,
    resolve_label_type,
    sanitize_product_name,
    slugify,
)
from vision_orders.storage import StorageAdapter, StoredFile, build_storage_path, normalize_folder

logger = logging.getLogger(__name__)

DEFAULT_FILE_BASE = "pedido-vision"
DEFAULT_EXTENSION = ".pdf"


class LabelRenderer(Protocol):
    def render(self, request: RenderRequest) -> List[GeneratedLabel]:
        ...


def select_items_for_generation(items: Optional[Sequence[OrderItem]]) -> List[OrderItem]:
    if items is None:
        raise InvalidInputError("no items supplied")
    selected = [it for it in items if it is not None and it.include]
    if not selected:
        raise InvalidInputError("no items selected for label generation")
    return selected


def resolve_item_label_type(item: OrderItem) -> LabelType:
    """Client text decides, unless it only yields the default and the caller picked something else."""
    resolved = resolve_label_type(item.client)
    stored = normalize_label_type(item.label_type)
    if resolved == DEFAULT_LABEL_TYPE and stored != DEFAULT_LABEL_TYPE:
        return stored
    return resolved


def build_file_base(product_name: str, position: int) -> str:
    return f"{slugify(product_name) or DEFAULT_FILE_BASE}-{position}"


def label_extension(label: GeneratedLabel) -> str:
    ext = mimetypes.guess_extension((label.mime_type or '').split(';')[0].strip()) if label.mime_type else None
    if not ext:
        ext = Path(label.file_name or '').suffix
    return ext or DEFAULT_EXTENSION


def name_labels(labels: Sequence[GeneratedLabel], base: str) -> List[GeneratedLabel]:
    named = []
    for k, label in enumerate(labels, start=1):
        suffix = f"-{k}" if len(labels) > 1 else ""
        named.append(GeneratedLabel(
            file_name=f"{base}{suffix}-etiqueta{label_extension(label)}",
            mime_type=label.mime_type,
            buffer=label.buffer,
            storage_bucket=label.storage_bucket,
        ))
    return named


def build_render_request(item: OrderItem, label_type: LabelType, position: int,
                         packing_date: Optional[str] = None) -> RenderRequest:
    product_name = sanitize_product_name(item.product_name)
    product = resolve_canonical_product(product_name)
    return RenderRequest(
        layout=label_type,
        product_name=product_name,
        quantity_text=item.quantity_text or '',
        file_name=build_file_base(product_name, position) + DEFAULT_EXTENSION,
        variety=default_variety(product),
        canonical_product=product,
        packing_date=packing_date,
    )


def generate_labels(items: Optional[Sequence[OrderItem]], renderer: LabelRenderer,
                    packing_date: Optional[str] = None) -> BatchResult:
    selected = select_items_for_generation(items)
    batch = BatchResult()
    for index, item in enumerate(selected):
        position = index + 1
        label_type = resolve_item_label_type(item)
        try:
            request = build_render_request(item, label_type, position, packing_date)
            labels = renderer.render(request)
            if not labels:
                raise RuntimeError("renderer returned no labels")
            outcome = LabelSuccess(name_labels(labels, build_file_base(request.product_name, position)))
            logger.info(f"Item {position}/{len(selected)} '{request.product_name}' -> "
                        f"{len(labels)} label(s) [{label_type.value}]")
        except Exception as e:
            logger.error(f"Item {position}/{len(selected)} '{item.product_name}' failed: {e}")
            outcome = LabelFailure(str(e) or e.__class__.__name__)
        batch.entries.append(BatchEntry(index=index, item=item, label_type=label_type, outcome=outcome))

    logger.info(f"Label batch finished: {len(batch.succeeded)} ok, {len(batch.failed)} failed")
    return batch


def upload_batch(batch: BatchResult, storage: StorageAdapter, bucket: str = "etiquetas_final",
                 folder: Optional[str] = "vision") -> List[StoredFile]:
    """Hand every generated label to the storage adapter, in batch order."""
    folder_path = normalize_folder(folder)
    uploaded = []
    for entry in batch.succeeded:
        product_name = sanitize_product_name(entry.item.product_name)
        for label in entry.outcome.labels:
            if not label.buffer or not label.file_name:
                continue
            description = json.dumps({
                'generatedFrom': 'vision-orders',
                'productName': product_name,
                'labelType': entry.label_type.value,
            })
            uploaded.append(storage.upload(
                label.storage_bucket or bucket,
                build_storage_path(folder_path, label.file_name),
                label.buffer,
                label.mime_type,
                {'description': description},
            ))
    return uploaded
