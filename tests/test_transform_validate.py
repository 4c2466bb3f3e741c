from vision_orders.generate import generate_labels
from vision_orders.models import LabelType, OrderItem, OrderTable, ParsedOrder
from vision_orders.transform import batch_to_dict, item_from_dict, item_to_dict, order_from_dict, order_to_dict
from vision_orders.validate import validate_obj


def sample_order():
    return ParsedOrder(
        client="Lidl",
        items=[
            OrderItem(id="perejil-0", product_name="Perejil", quantity_text="3 kg", client="Lidl",
                      label_type=LabelType.LIDL, quantity=3.0, cantidad=3),
            OrderItem(id="romero-1", product_name="Romero", quantity_text="", client="Lidl",
                      label_type=LabelType.LIDL, include=False),
        ],
        raw_text="Producto\tCantidad\nPerejil\t3 kg\nRomero\t",
        table=OrderTable(headers=["Producto", "Cantidad"], rows=[["Perejil", "3 kg"], ["Romero", ""]]),
    )


def test_serialized_order_passes_schema():
    obj = order_to_dict(sample_order())
    ok, errors = validate_obj(obj)
    assert ok, errors
    assert obj["items"][0] == {
        "id": "perejil-0", "productName": "Perejil", "quantityText": "3 kg", "client": "Lidl",
        "labelType": "lidl", "include": True, "quantity": 3.0, "cantidad": 3,
    }
    assert "units" not in obj["items"][0]
    assert obj["packingDate"] is None
    assert "notes" not in obj


def test_degraded_order_with_notes_passes_schema():
    order = ParsedOrder(client="", items=[], raw_text="", notes="manual review required",
                        packing_date="2024-05-02")
    ok, errors = validate_obj(order_to_dict(order))
    assert ok, errors


def test_schema_rejects_bad_documents():
    obj = order_to_dict(sample_order())
    obj["items"][0]["labelType"] = "carrefour"
    obj["packingDate"] = "02/05/2024"
    del obj["rawText"]
    ok, errors = validate_obj(obj)
    assert not ok
    assert len(errors) == 3
    assert any(e.startswith("items/0/labelType") for e in errors)


def test_order_round_trip():
    order = sample_order()
    again = order_from_dict(order_to_dict(order))
    assert again == order


def test_item_from_edited_dict():
    item = item_from_dict({"productName": "  ", "labelType": "Etiqueta blanca grande",
                           "include": "false", "quantityText": " 4 "}, 7)
    assert item.product_name == "Producto sin nombre"
    assert item.id == "producto-sin-nombre-7"
    assert item.label_type == LabelType.BLANCA_GRANDE
    assert item.include is False
    assert item.quantity_text == "4"
    assert (item.quantity, item.units, item.cantidad) == (4.0, 4, 4)
    assert item_to_dict(item)["labelType"] == "blanca-grande"


def test_batch_summary(fake_renderer):
    batch = generate_labels(sample_order().items + [
        OrderItem(id="x-2", product_name="Eneldo", quantity_text="1", client="Aldi")],
        fake_renderer(fail_on={"Eneldo"}))
    summary = batch_to_dict(batch)

    assert summary["succeeded"] == 1
    assert summary["failed"] == 1
    first, second = summary["data"]
    assert first["status"] == "completed"
    assert first["labels"][0]["fileName"] == "perejil-1-etiqueta.pdf"
    assert second == {"index": 1, "productName": "Eneldo", "labelType": "aldi", "status": "error",
                      "error": "boom rendering Eneldo"}


def test_edited_row_without_projections_rederives_them():
    row = {"id": "albahaca-0", "productName": "Albahaca", "quantityText": "12 bandejas",
           "client": "Mercadona", "labelType": "mercadona", "include": True}
    item = item_from_dict(row)
    assert (item.quantity, item.units, item.cantidad) == (12.0, 12, 12)

    stored = dict(row, quantityText="2,5 kg", quantity=2.5)
    item = item_from_dict(stored)
    assert (item.quantity, item.units, item.cantidad) == (2.5, None, None)
