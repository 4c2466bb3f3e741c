# vision_orders/models.py
"""
Data model for one parse -> edit -> generate round trip.

Nothing here is persisted; orders and items live only as long as the caller
keeps them around.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

UNNAMED_PRODUCT = "Producto sin nombre"


class InvalidInputError(ValueError):
    """Precondition failure on a public entry point (missing buffer, empty batch...)."""


class LabelType(str, Enum):
    MERCADONA = "mercadona"
    ALDI = "aldi"
    LIDL = "lidl"
    HIPERDINO = "hiperdino"
    KANALI = "kanali"
    BLANCA_GRANDE = "blanca-grande"
    BLANCA_PEQUENA = "blanca-pequena"


DEFAULT_LABEL_TYPE = LabelType.MERCADONA


class CanonicalProduct(str, Enum):
    ACELGA = "ACELGA"
    ALBAHACA = "ALBAHACA"
    CEBOLLINO = "CEBOLLINO"
    ENELDO = "ENELDO"
    PAK_CHOI = "PAK CHOI"
    CILANTRO = "CILANTRO"
    HIERBAHUERTO = "HIERBAHUERTO"
    PEREJIL = "PEREJIL"
    ROMERO = "ROMERO"


@dataclass
class OrderItem:
    id: str
    product_name: str
    quantity_text: str
    client: str = ""
    label_type: LabelType = DEFAULT_LABEL_TYPE
    include: bool = True
    # numeric projections of quantity_text, absent when ambiguous
    quantity: Optional[float] = None
    units: Optional[int] = None
    cantidad: Optional[int] = None


@dataclass
class OrderTable:
    headers: List[str]
    rows: List[List[str]]


@dataclass
class ParsedOrder:
    client: str
    items: List[OrderItem]
    raw_text: str
    notes: Optional[str] = None
    table: Optional[OrderTable] = None
    packing_date: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return bool(self.notes)


@dataclass
class CleanParse:
    order: ParsedOrder


@dataclass
class DegradedParse:
    order: ParsedOrder
    reason: str


ParseResult = Union[CleanParse, DegradedParse]


@dataclass
class RenderRequest:
    """Everything the external renderer needs to lay out one item's labels."""
    layout: LabelType
    product_name: str
    quantity_text: str
    file_name: str
    variety: Optional[str] = None
    canonical_product: Optional[CanonicalProduct] = None
    packing_date: Optional[str] = None


@dataclass
class GeneratedLabel:
    file_name: str
    mime_type: str
    buffer: bytes
    storage_bucket: Optional[str] = None


@dataclass
class LabelSuccess:
    labels: List[GeneratedLabel]


@dataclass
class LabelFailure:
    message: str


LabelOutcome = Union[LabelSuccess, LabelFailure]


@dataclass
class BatchEntry:
    index: int
    item: OrderItem
    label_type: LabelType
    outcome: LabelOutcome

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, LabelSuccess)


@dataclass
class BatchResult:
    entries: List[BatchEntry] = field(default_factory=list)

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def succeeded(self) -> List[BatchEntry]:
        return [e for e in self.entries if e.ok]

    @property
    def failed(self) -> List[BatchEntry]:
        return [e for e in self.entries if not e.ok]
