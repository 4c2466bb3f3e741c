import pytest

from vision_orders.items import ItemRow, build_items, map_columns, parse_quantity
from vision_orders.models import LabelType


@pytest.mark.parametrize("text,expected", [
    ("12", (12.0, 12, 12)),
    ("4 uds", (4.0, 4, 4)),
    ("10 bandejas", (10.0, 10, 10)),
    ("3 kg", (3.0, None, 3)),
    ("2,5 kg", (2.5, None, None)),
    ("2 x 40g", (None, None, None)),
    ("unas cuantas", (None, None, None)),
    ("", (None, None, None)),
    (None, (None, None, None)),
])
def test_parse_quantity(text, expected):
    assert parse_quantity(text) == expected


def test_map_columns_synonyms():
    assert map_columns(["Artículo", "Cantidad (kg)", "Cliente"]) == {"product": 0, "quantity": 1, "client": 2}
    assert map_columns(["Kg", "Descripción"]) == {"quantity": 0, "product": 1}
    assert map_columns(["Nombre", "Precio"]) == {}


def test_build_items_keeps_order_and_client_override():
    rows = [
        ItemRow("Albahaca", "12", ""),
        ItemRow("", "3", ""),
        ItemRow("Perejil", " 5 manojos ", "Lidl"),
    ]
    items = build_items(rows, "Mercadona")
    assert [it.id for it in items] == ["albahaca-0", "producto-sin-nombre-1", "perejil-2"]
    assert [it.label_type for it in items] == [LabelType.MERCADONA, LabelType.MERCADONA, LabelType.LIDL]
    assert items[2].quantity_text == "5 manojos"
    assert items[2].units == 5
    assert all(it.include for it in items)
