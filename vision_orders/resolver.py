# vision_orders/resolver.py
"""
Free text -> closed sets.

Maps client/retailer names onto label layouts and product names onto
canonical products (and their default variety). Every function here is
total: unknown input resolves to a default or to None, never to an error.

The order of the containment checks is load-bearing (first match wins) and is
pinned by tests; do not reorder without updating the fixtures.
"""

import re
import unicodedata
from typing import Dict, List, Optional

from vision_orders.models import (
    CanonicalProduct,
    DEFAULT_LABEL_TYPE,
    LabelType,
    UNNAMED_PRODUCT,
)

# ---------------- text normalization ----------------

def strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize('NFD', value or '')
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(value: str) -> str:
    """'Pak Choí  BIO' -> 'pak-choi-bio'"""
    slug = re.sub(r'[^A-Za-z0-9]+', '-', strip_diacritics(value))
    return slug.strip('-').lower()


def normalize_comparable_text(value: str) -> str:
    """'pak-choi' -> 'PAK CHOI'"""
    text = re.sub(r'[^A-Za-z0-9]+', ' ', strip_diacritics(value))
    return re.sub(r'\s+', ' ', text).strip().upper()


def sanitize_product_name(value) -> str:
    trimmed = str(value).strip() if value is not None else ''
    return trimmed or UNNAMED_PRODUCT


def build_item_id(product_name: str, index: int) -> str:
    return f"{slugify(product_name) or 'item'}-{index}"


# ---------------- label types ----------------

CLIENT_LABEL_MAP: Dict[str, LabelType] = {
    'mercadona': LabelType.MERCADONA,
    'aldi': LabelType.ALDI,
    'lidl': LabelType.LIDL,
    'hiperdino': LabelType.HIPERDINO,
    'kanali': LabelType.KANALI,
}

# checked in this order, first hit wins
CLIENT_KEYWORDS = [
    ('aldi', LabelType.ALDI),
    ('lidl', LabelType.LIDL),
    ('hiper', LabelType.HIPERDINO),
    ('kanali', LabelType.KANALI),
]

LABEL_TYPE_TITLES: Dict[LabelType, str] = {
    LabelType.MERCADONA: 'Etiqueta Mercadona',
    LabelType.ALDI: 'Etiqueta Aldi',
    LabelType.LIDL: 'Etiqueta Lidl',
    LabelType.HIPERDINO: 'Etiqueta Hiperdino',
    LabelType.KANALI: 'Etiqueta Kanali',
    LabelType.BLANCA_GRANDE: 'Etiqueta blanca grande',
    LabelType.BLANCA_PEQUENA: 'Etiqueta blanca pequeña',
}

WHITE_LABEL_PRODUCTS = [
    'Albahaca', 'Cebolla', 'Sandía', 'Hierbas aromáticas', 'Perejil',
    'Cilantro', 'Hierbahuerto', 'Romero', 'Rucula', 'Eneldo', 'Cebollino',
    'Pak Choi', 'Hojas frescas acelga', 'Melón', 'Naranja',
]

LABEL_TYPE_PRODUCTS: Dict[LabelType, List[str]] = {
    LabelType.MERCADONA: ['Albahaca'],
    LabelType.ALDI: ['Acelgas', 'Albahaca', 'Cebollino', 'Eneldo', 'Pak Choi',
                     'Cilantro', 'Hierbahuerto', 'Perejil', 'Romero'],
    LabelType.LIDL: ['Cebollino', 'Cilantro', 'Eneldo', 'Hierbahuerto',
                     'Perejil', 'Romero', 'Albahaca'],
    LabelType.HIPERDINO: ['Naranja', 'Albahaca'],
    LabelType.KANALI: ['Romero', 'Cilantro', 'Perejil', 'Cebollino', 'Rucula',
                       'Albahaca', 'Hierbabuena'],
    LabelType.BLANCA_GRANDE: WHITE_LABEL_PRODUCTS,
    LabelType.BLANCA_PEQUENA: WHITE_LABEL_PRODUCTS,
}

DEFAULT_PRODUCT = 'Albahaca'


def resolve_label_type(client_text: Optional[str]) -> LabelType:
    """Layout for a free-text client name; unknown clients get the default layout."""
    normalized = (client_text or '').strip().lower()
    direct = CLIENT_LABEL_MAP.get(normalized)
    if direct is not None:
        return direct
    for keyword, label_type in CLIENT_KEYWORDS:
        if keyword in normalized:
            return label_type
    return DEFAULT_LABEL_TYPE


def normalize_label_type(value) -> LabelType:
    """
    Parse a stored or caller-supplied layout value (enum member, enum value or
    free text). Unlike resolve_label_type this also recognizes the generic
    white labels.
    """
    if isinstance(value, LabelType):
        return value
    if not value:
        return DEFAULT_LABEL_TYPE
    normalized = str(value).strip().lower()
    try:
        return LabelType(normalized)
    except ValueError:
        pass
    for keyword, label_type in CLIENT_KEYWORDS:
        if keyword in normalized:
            return label_type
    if 'blanca' in normalized and 'peque' in normalized:
        return LabelType.BLANCA_PEQUENA
    if 'blanca' in normalized and 'gran' in normalized:
        return LabelType.BLANCA_GRANDE
    return DEFAULT_LABEL_TYPE


def is_white_label(label_type: LabelType) -> bool:
    return label_type in (LabelType.BLANCA_GRANDE, LabelType.BLANCA_PEQUENA)


def label_type_title(label_type: LabelType) -> str:
    return LABEL_TYPE_TITLES.get(label_type, LABEL_TYPE_TITLES[DEFAULT_LABEL_TYPE])


def products_for_label_type(label_type: LabelType) -> List[str]:
    return list(LABEL_TYPE_PRODUCTS.get(label_type, []))


def normalize_product_for_label_type(label_type: LabelType, value: Optional[str]) -> str:
    """White labels take any product name; retailer layouts snap to their catalog."""
    options = LABEL_TYPE_PRODUCTS.get(label_type) or []
    fallback = options[0] if options else DEFAULT_PRODUCT
    trimmed = value.strip() if isinstance(value, str) else ''
    if not trimmed:
        return fallback
    if is_white_label(label_type):
        return trimmed
    lowered = trimmed.lower()
    for option in options:
        if option.lower() == lowered:
            return option
    return fallback


# ---------------- canonical products ----------------

DEFAULT_VARIETY_BY_PRODUCT: Dict[CanonicalProduct, str] = {
    CanonicalProduct.ACELGA: 'LOUISIANA',
    CanonicalProduct.ALBAHACA: 'GENOVESA',
    CanonicalProduct.CEBOLLINO: 'DOLORES',
    CanonicalProduct.ENELDO: 'DUKAT',
    CanonicalProduct.PAK_CHOI: 'GOKU',
    CanonicalProduct.CILANTRO: 'CRUISER',
    CanonicalProduct.HIERBAHUERTO: 'CANARIA',
    CanonicalProduct.PEREJIL: 'ITALIANO',
    CanonicalProduct.ROMERO: 'EUROPEO',
}

# single-keyword products, checked in this order
PRODUCT_KEYWORDS = [
    ('ALBAHACA', CanonicalProduct.ALBAHACA),
    ('CEBOLLINO', CanonicalProduct.CEBOLLINO),
    ('ENELDO', CanonicalProduct.ENELDO),
    ('CILANTRO', CanonicalProduct.CILANTRO),
    ('PEREJIL', CanonicalProduct.PEREJIL),
    ('ROMERO', CanonicalProduct.ROMERO),
    ('ACELGA', CanonicalProduct.ACELGA),
]


def resolve_canonical_product(product_name: Optional[str]) -> Optional[CanonicalProduct]:
    if not isinstance(product_name, str):
        return None
    normalized = normalize_comparable_text(product_name)
    if not normalized:
        return None

    for keyword, product in PRODUCT_KEYWORDS:
        if keyword in normalized:
            return product

    if 'PAKCHOI' in normalized or ('PAK' in normalized and 'CHOI' in normalized):
        return CanonicalProduct.PAK_CHOI

    if 'HIERBAHUERTO' in normalized or 'HIERBABUENA' in normalized:
        return CanonicalProduct.HIERBAHUERTO

    return None


def default_variety(product: Optional[CanonicalProduct]) -> Optional[str]:
    if product is None:
        return None
    return DEFAULT_VARIETY_BY_PRODUCT.get(product)


def default_variety_for_name(product_name: Optional[str]) -> Optional[str]:
    return default_variety(resolve_canonical_product(product_name))
