# vision_orders/parser.py
"""
Order parsing entry point.

    result = parse_order_document(buffer, mime_type, file_name)
    if isinstance(result, DegradedParse):
        ...  # result.reason explains what needs manual review

Documents are dispatched on their content family (spreadsheet, image, PDF).
Failures inside a document never escape: they come back as a DegradedParse
whose order carries notes. Only precondition violations raise
(InvalidInputError).
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from vision_orders.config import ProcessingConfig
from vision_orders.extract_excel import extract_tabular
from vision_orders.extract_ocr import degraded, extract_from_image
from vision_orders.extract_pdf import extract_from_pdf
from vision_orders.models import DegradedParse, InvalidInputError, ParsedOrder, ParseResult
from vision_orders.vision.service import get_vision_service

logger = logging.getLogger(__name__)


class ContentFamily(Enum):
    TABULAR = "tabular"
    IMAGE = "image"
    PDF = "pdf"
    UNSUPPORTED = "unsupported"


TABULAR_MIME_TYPES = {
    'text/csv', 'application/csv', 'text/tab-separated-values',
    'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'application/vnd.ms-excel.sheet.macroenabled.12',
}

EXTENSION_FAMILIES = {
    '.csv': ContentFamily.TABULAR,
    '.tsv': ContentFamily.TABULAR,
    '.xlsx': ContentFamily.TABULAR,
    '.xlsm': ContentFamily.TABULAR,
    '.xls': ContentFamily.TABULAR,
    '.pdf': ContentFamily.PDF,
    '.png': ContentFamily.IMAGE,
    '.jpg': ContentFamily.IMAGE,
    '.jpeg': ContentFamily.IMAGE,
    '.tif': ContentFamily.IMAGE,
    '.tiff': ContentFamily.IMAGE,
    '.bmp': ContentFamily.IMAGE,
    '.webp': ContentFamily.IMAGE,
    '.gif': ContentFamily.IMAGE,
}


def sniff_family(buffer: bytes) -> ContentFamily:
    head = buffer[:8]
    if head.startswith(b'%PDF'):
        return ContentFamily.PDF
    if head.startswith(b'\x89PNG') or head.startswith(b'\xff\xd8') or head[:4] in (b'II*\x00', b'MM\x00*'):
        return ContentFamily.IMAGE
    if head.startswith(b'PK\x03\x04'):
        # zip container; xlsx is the only one we accept
        return ContentFamily.TABULAR
    return ContentFamily.UNSUPPORTED


def detect_content_family(mime_type: Optional[str], file_name: Optional[str] = None,
                          buffer: Optional[bytes] = None) -> ContentFamily:
    """Declared mime type first, then the filename extension, then magic bytes."""
    mime = (mime_type or '').split(';')[0].strip().lower()
    if mime == 'application/pdf':
        return ContentFamily.PDF
    if mime.startswith('image/'):
        return ContentFamily.IMAGE
    if mime in TABULAR_MIME_TYPES:
        return ContentFamily.TABULAR

    suffix = Path(file_name or '').suffix.lower()
    if suffix in EXTENSION_FAMILIES:
        return EXTENSION_FAMILIES[suffix]

    if buffer:
        return sniff_family(buffer)
    return ContentFamily.UNSUPPORTED


def _unsupported(buffer, mime_type, file_name, vision, config) -> ParseResult:
    return degraded(f"Unsupported document type ({mime_type or 'unknown'}); enter the order manually.")


def _tabular(buffer, mime_type, file_name, vision, config) -> ParseResult:
    return extract_tabular(buffer, file_name=file_name, mime_type=mime_type)


def _image(buffer, mime_type, file_name, vision, config) -> ParseResult:
    return extract_from_image(buffer, vision, file_name=file_name)


def _pdf(buffer, mime_type, file_name, vision, config) -> ParseResult:
    return extract_from_pdf(buffer, vision, file_name=file_name, config=config)


HANDLERS: Dict[ContentFamily, Callable[..., ParseResult]] = {
    ContentFamily.TABULAR: _tabular,
    ContentFamily.IMAGE: _image,
    ContentFamily.PDF: _pdf,
    ContentFamily.UNSUPPORTED: _unsupported,
}


class _UnavailableVision:
    """Stands in for a backend that failed to initialise; every call reports why."""

    def __init__(self, error: Exception):
        self.error = error

    def recognize_text(self, image: bytes) -> str:
        raise self.error


def _resolve_vision(vision, config: ProcessingConfig):
    if vision is not None:
        return vision
    try:
        return get_vision_service(config)
    except Exception as e:
        logger.error(f"Vision backend '{config.vision_backend}' unavailable: {e}")
        return _UnavailableVision(e)


def parse_order_document(buffer: bytes, mime_type: Optional[str], file_name: Optional[str] = None,
                         config: Optional[ProcessingConfig] = None, vision=None) -> ParseResult:
    if buffer is None or len(buffer) == 0:
        raise InvalidInputError("missing document buffer")
    config = config or ProcessingConfig.from_env()
    if len(buffer) > config.max_file_size_bytes:
        raise InvalidInputError(
            f"document is {len(buffer)} bytes, larger than the {config.max_file_size_mb} MB limit")

    family = detect_content_family(mime_type, file_name, buffer)
    logger.info(f"Parsing {file_name or '<buffer>'} as {family.value} ({mime_type or 'no mime type'})")

    if family in (ContentFamily.IMAGE, ContentFamily.PDF):
        vision = _resolve_vision(vision, config)

    try:
        result = HANDLERS[family](buffer, mime_type, file_name, vision, config)
    except Exception as e:
        logger.exception(f"Unexpected failure parsing {file_name or '<buffer>'}")
        result = degraded(f"The document could not be processed ({e}); enter the order manually.")

    if isinstance(result, DegradedParse):
        logger.warning(f"Degraded parse of {file_name or '<buffer>'}: {result.reason}")
    return result


def parse_order(buffer: bytes, mime_type: Optional[str], file_name: Optional[str] = None,
                config: Optional[ProcessingConfig] = None, vision=None) -> ParsedOrder:
    return parse_order_document(buffer, mime_type, file_name, config=config, vision=vision).order
