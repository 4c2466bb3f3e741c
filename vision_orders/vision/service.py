# vision_orders/vision/service.py
"""
Document-vision collaborator: image bytes in, recognized text out.

Backends are pluggable (Google Cloud Vision, local Tesseract, OpenAI vision).
One client handle per backend and client settings is built lazily and then
shared read-only across calls.
"""

import logging
from typing import Dict, Optional, Protocol, Tuple

from vision_orders.config import ProcessingConfig

logger = logging.getLogger(__name__)


class VisionServiceError(RuntimeError):
    """The vision call failed or returned an error payload."""


class VisionUnavailableError(VisionServiceError):
    """The backend cannot be used at all (missing package or credentials)."""


class VisionService(Protocol):
    def recognize_text(self, image: bytes) -> str:
        ...


_services: Dict[Tuple, VisionService] = {}


def service_key(config: ProcessingConfig) -> Tuple:
    """Every config field a backend reads when it builds its client."""
    return (
        config.vision_backend,
        config.google_credentials_json,
        config.google_credentials_b64,
        config.openai_api_key,
        config.openai_vision_model,
        config.vision_timeout,
        config.ocr_lang,
    )


def _build_service(config: ProcessingConfig) -> VisionService:
    backend = config.vision_backend
    if backend == "google":
        from vision_orders.vision.google_vision import GoogleVisionService
        return GoogleVisionService.from_config(config)
    if backend == "tesseract":
        from vision_orders.vision.tesseract_ocr import TesseractVisionService
        return TesseractVisionService(lang=config.ocr_lang)
    if backend == "openai":
        from vision_orders.vision.openai_adapter import OpenAIVisionService
        return OpenAIVisionService.from_config(config)
    raise VisionUnavailableError(f"unknown vision backend: {backend!r}")


def get_vision_service(config: Optional[ProcessingConfig] = None) -> VisionService:
    """Return the cached service for this backend and client settings, building it on first use."""
    config = config or ProcessingConfig.from_env()
    key = service_key(config)
    service = _services.get(key)
    if service is None:
        service = _build_service(config)
        _services[key] = service
        logger.info(f"Vision backend '{config.vision_backend}' initialised")
    return service


def reset_vision_services() -> None:
    _services.clear()
