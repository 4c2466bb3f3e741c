# vision_orders/vision/google_vision.py
"""
Google Cloud Vision adapter.

Credentials come from GOOGLE_VISION_CREDENTIALS_JSON (service account JSON)
or GOOGLE_VISION_CREDENTIALS_B64 (the same, base64-encoded); without either
the client falls back to application default credentials.
"""

import base64
import json
import logging
from typing import Optional

from vision_orders.config import ProcessingConfig
from vision_orders.vision.service import VisionServiceError, VisionUnavailableError

logger = logging.getLogger(__name__)

VISION_SCOPES = ["https://www.googleapis.com/auth/cloud-vision"]


def load_credentials_info(config: ProcessingConfig) -> Optional[dict]:
    raw = config.google_credentials_json
    if not raw and config.google_credentials_b64:
        try:
            raw = base64.b64decode(config.google_credentials_b64).decode("utf-8")
        except Exception as e:
            logger.warning(f"Ignoring undecodable GOOGLE_VISION_CREDENTIALS_B64: {e}")
            return None
    if not raw:
        return None
    try:
        info = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Ignoring invalid vision credentials JSON: {e}")
        return None
    if info.get("client_email") and info.get("private_key"):
        return info
    return None


class GoogleVisionService:
    def __init__(self, client):
        self.client = client

    @classmethod
    def from_config(cls, config: ProcessingConfig) -> 'GoogleVisionService':
        try:
            from google.cloud import vision
            from google.oauth2 import service_account
        except ImportError as e:
            raise VisionUnavailableError(f"google-cloud-vision not installed: {e}")

        info = load_credentials_info(config)
        try:
            if info:
                credentials = service_account.Credentials.from_service_account_info(info, scopes=VISION_SCOPES)
                client = vision.ImageAnnotatorClient(credentials=credentials)
            else:
                client = vision.ImageAnnotatorClient()
        except Exception as e:
            raise VisionUnavailableError(f"could not create Google Vision client: {e}")
        return cls(client)

    def recognize_text(self, image: bytes) -> str:
        from google.cloud import vision

        try:
            resp = self.client.document_text_detection(image=vision.Image(content=image))
        except Exception as e:
            raise VisionServiceError(f"Google Vision request failed: {e}")
        if resp.error.message:
            raise VisionServiceError(f"Google Vision error: {resp.error.message}")

        text = resp.full_text_annotation.text if resp.full_text_annotation else ""
        if not text and resp.text_annotations:
            text = resp.text_annotations[0].description
        return text or ""
