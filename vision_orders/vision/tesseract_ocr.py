# vision_orders/vision/tesseract_ocr.py
"""
Local OCR backend (pytesseract).

Highlights:
- OpenCV preprocessing: denoise, CLAHE, adaptive threshold, upscaling of small scans.
- Tries several PSM modes and keeps the output with the most digits (quantities and dates).
"""

import io
import re

from vision_orders.vision.service import VisionServiceError, VisionUnavailableError

PSM_CONFIGS = [
    "--oem 1 --psm 3",  # fully automatic page segmentation
    "--oem 1 --psm 4",  # assume columns
    "--oem 1 --psm 6",  # assume uniform block of text
    "--oem 1 --psm 11", # sparse text
]


def ocr_preprocess_cv(pil_image):
    import cv2
    import numpy as np
    from PIL import Image

    img = np.array(pil_image.convert("RGB"))
    gray = cv2.cvtColor(img, cv2.COLOR_RGB2GRAY)
    h, w = gray.shape
    if max(h, w) < 1000:
        gray = cv2.resize(gray, (w * 2, h * 2), interpolation=cv2.INTER_CUBIC)
    try:
        gray = cv2.fastNlMeansDenoising(gray, None, h=10,
                                        templateWindowSize=7, searchWindowSize=21)
    except cv2.error:
        pass
    clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
    gray = clahe.apply(gray)
    th = cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
                               cv2.THRESH_BINARY, 15, 12)
    return Image.fromarray(th)


def run_tesseract_variants(pil_img, lang="spa"):
    """Run Tesseract with multiple PSM modes and return best text by heuristic (most digits)."""
    import pytesseract

    best_text = ""
    best_score = -1
    last_error = None
    for cfg in PSM_CONFIGS:
        try:
            txt = pytesseract.image_to_string(pil_img, lang=lang, config=cfg)
        except pytesseract.TesseractError as e:
            last_error = e
            continue
        score = len(re.findall(r"\d", txt))
        if score > best_score:
            best_text = txt
            best_score = score
    if best_score < 0 and last_error is not None:
        raise VisionServiceError(f"tesseract failed: {last_error}")
    return best_text.replace("\x0c", "").strip()


class TesseractVisionService:
    def __init__(self, lang="spa"):
        try:
            import pytesseract
            pytesseract.get_tesseract_version()
        except ImportError as e:
            raise VisionUnavailableError(f"pytesseract not installed: {e}")
        except Exception as e:
            raise VisionUnavailableError(f"tesseract binary not available: {e}")
        self.lang = lang

    def recognize_text(self, image: bytes) -> str:
        from PIL import Image, UnidentifiedImageError

        try:
            pil = Image.open(io.BytesIO(image))
            pil.load()
        except (UnidentifiedImageError, OSError) as e:
            raise VisionServiceError(f"unreadable image: {e}")

        text = run_tesseract_variants(ocr_preprocess_cv(pil), lang=self.lang)
        if not text:
            text = run_tesseract_variants(pil, lang=self.lang)
        return text
