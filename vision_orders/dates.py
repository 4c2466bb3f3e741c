# vision_orders/dates.py
# Packing/harvest date recovery from OCR text.
# Lines that mention loading/packing/harvest are searched before the rest of
# the document; the first candidate that is a real calendar date wins.

import re
from datetime import date
from typing import List, Optional

RE_DATE_CANDIDATE = re.compile(r'\b\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}\b')
RE_DATE_PARTS = re.compile(r'^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})$')

# "fecha de carga", "envasado", "cosecha", "recolección", "harvest", "packed"
RE_PACKING_LINE = re.compile(r'carga|envas|cosecha|recolec|harvest|pack', re.I)

YEAR_PIVOT = 70
MIN_YEAR = 1900
MAX_YEAR = 2100


def find_date_candidates(line: str) -> List[str]:
    return RE_DATE_CANDIDATE.findall(line or "")


def normalize_date(text: str) -> Optional[str]:
    """
    Turn a day/month/year string into ISO yyyy-mm-dd.

    Two-digit years pivot at 70 ("1/1/69" -> 2069, "1/1/70" -> 1970).
    Returns None for anything that is not a real date in [1900, 2100].
    """
    m = RE_DATE_PARTS.match((text or "").strip())
    if not m:
        return None
    day_s, month_s, year_s = m.groups()
    day, month, year = int(day_s), int(month_s), int(year_s)
    if len(year_s) == 2:
        year += 1900 if year >= YEAR_PIVOT else 2000
    if year < MIN_YEAR or year > MAX_YEAR:
        return None
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def extract_packing_date(raw_text: str) -> Optional[str]:
    if not raw_text or not raw_text.strip():
        return None

    lines = [ln.strip() for ln in raw_text.splitlines() if ln.strip()]
    prioritized = []
    secondary = []
    for line in lines:
        dates = find_date_candidates(line)
        if not dates:
            continue
        if RE_PACKING_LINE.search(line):
            prioritized.extend(dates)
        else:
            secondary.extend(dates)

    for candidate in prioritized + secondary:
        iso = normalize_date(candidate)
        if iso:
            return iso
    return None
