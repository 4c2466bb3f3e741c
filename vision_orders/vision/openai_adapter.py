"""
OpenAI vision adapter.
Sends the page as a data URL and asks for a verbatim transcription; the line
item heuristics run on the returned text like on any other OCR output.
"""

import base64
import logging

from vision_orders.config import ProcessingConfig
from vision_orders.vision.service import VisionServiceError, VisionUnavailableError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You read delivery notes and purchase orders. Transcribe every line of text "
    "exactly as printed, one printed line per output line, keeping table rows on "
    "a single line with ' | ' between cells. Return only the transcription."
)


def sniff_image_mime(image: bytes) -> str:
    if image.startswith(b"\x89PNG"):
        return "image/png"
    if image.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if image[:4] in (b"II*\x00", b"MM\x00*"):
        return "image/tiff"
    if image.startswith(b"%PDF"):
        return "application/pdf"
    return "image/png"


class OpenAIVisionService:
    def __init__(self, client, model="gpt-4o-mini", timeout=60):
        self.client = client
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: ProcessingConfig) -> 'OpenAIVisionService':
        if not config.openai_api_key:
            raise VisionUnavailableError("OPENAI_API_KEY is not configured")
        try:
            import openai
        except ImportError:
            raise VisionUnavailableError("OpenAI package not installed. Run: pip install openai")
        client = openai.OpenAI(api_key=config.openai_api_key)
        return cls(client, model=config.openai_vision_model, timeout=config.vision_timeout)

    def recognize_text(self, image: bytes) -> str:
        url = f"data:{sniff_image_mime(image)};base64,{base64.b64encode(image).decode('ascii')}"
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": [
                        {"type": "text", "text": "Transcribe this order."},
                        {"type": "image_url", "image_url": {"url": url}},
                    ]},
                ],
                temperature=0,
                timeout=self.timeout,
            )
        except Exception as e:
            raise VisionServiceError(f"OpenAI vision call failed: {e}")

        content = response.choices[0].message.content or ""
        return content.replace("```", "").strip()
