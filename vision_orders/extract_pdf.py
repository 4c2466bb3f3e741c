# vision_orders/extract_pdf.py
# PDF extractor: renders each page to an image (pdf2image), sends every page
# through the vision collaborator and merges the line items in page order.
# The client and packing date come from the first page that has one.

import io
import logging
from typing import List, Optional

from vision_orders.config import ProcessingConfig
from vision_orders.dates import extract_packing_date
from vision_orders.extract_ocr import degraded, extract_rows_from_text, normalize_ocr_text
from vision_orders.items import build_items
from vision_orders.models import CleanParse, ParsedOrder, ParseResult

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"


def render_pages(buffer: bytes, dpi=300, page_limit=10) -> List[bytes]:
    """PDF bytes -> list of PNG bytes, one per page (at most page_limit pages)."""
    from pdf2image import convert_from_bytes

    images = convert_from_bytes(buffer, dpi=dpi, first_page=1, last_page=page_limit)
    pages = []
    for img in images:
        out = io.BytesIO()
        img.convert("RGB").save(out, format="PNG")
        pages.append(out.getvalue())
    return pages


def extract_from_pdf(buffer: bytes, vision, file_name: Optional[str] = None,
                     config: Optional[ProcessingConfig] = None) -> ParseResult:
    config = config or ProcessingConfig()
    name = file_name or '<pdf>'
    try:
        pages = render_pages(buffer, dpi=config.ocr_dpi, page_limit=config.pdf_page_limit)
    except Exception as e:
        logger.error(f"PDF rendering failed for {name}: {e}")
        return degraded(f"The PDF could not be rendered ({e}); enter the order manually.")
    if not pages:
        return degraded("The PDF has no pages; enter the order manually.")

    page_texts = []
    for page_no, page in enumerate(pages, start=1):
        try:
            page_texts.append(normalize_ocr_text(vision.recognize_text(page)))
        except Exception as e:
            logger.error(f"Vision call failed for {name} page {page_no}: {e}")
            return degraded(
                f"Text recognition failed on page {page_no} ({e}); enter the order manually.",
                raw_text=PAGE_SEPARATOR.join(t for t in page_texts if t))

    raw_text = PAGE_SEPARATOR.join(t for t in page_texts if t)
    if not raw_text:
        return degraded("No text was recognised in the document; manual review required.")

    client = ''
    packing_date = None
    item_rows = []
    for text in page_texts:
        if not text:
            continue
        page_client, page_rows = extract_rows_from_text(text)
        client = client or page_client
        packing_date = packing_date or extract_packing_date(text)
        item_rows.extend(page_rows)

    if not item_rows:
        return degraded(
            "Text was recognised but no line items could be identified; manual review required.",
            raw_text=raw_text, packing_date=packing_date)

    logger.debug(f"PDF parse of {name}: {len(pages)} pages, {len(item_rows)} items")
    return CleanParse(ParsedOrder(
        client=client,
        items=build_items(item_rows, client),
        raw_text=raw_text,
        packing_date=packing_date,
    ))
