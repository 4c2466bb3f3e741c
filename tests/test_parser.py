import pytest

from vision_orders.config import ProcessingConfig
from vision_orders.extract_ocr import parse_client_name, try_parse_line_for_item
from vision_orders.models import CleanParse, DegradedParse, InvalidInputError, LabelType
from vision_orders.parser import ContentFamily, detect_content_family, parse_order, parse_order_document
from vision_orders.vision.service import VisionServiceError

PNG = b"\x89PNG\r\n\x1a\nfake-image"
PDF = b"%PDF-1.4 fake"

TABLE_PHOTO = """LIDL SUPERMERCADOS
Fecha de carga: 12/03/24
Producto | Cantidad
Albahaca | 12 bandejas
Cilantro | 5
Total 17
"""

FREE_TEXT_PHOTO = """Pedido nº 123
Cliente: Kanali
- 12 bandejas albahaca
Perejil 3 kg
Gracias
"""


def test_image_with_text_table(config, fake_vision):
    vision = fake_vision(TABLE_PHOTO)
    result = parse_order_document(PNG, "image/png", "foto.png", config=config, vision=vision)

    assert isinstance(result, CleanParse)
    order = result.order
    assert vision.calls == [PNG]
    assert order.client == "LIDL SUPERMERCADOS"
    assert order.packing_date == "2024-03-12"
    assert order.table is None
    assert [(it.product_name, it.quantity_text) for it in order.items] == [
        ("Albahaca", "12 bandejas"), ("Cilantro", "5")]
    assert all(it.label_type == LabelType.LIDL for it in order.items)
    assert order.items[0].units == 12
    assert "Albahaca" in order.raw_text


def test_image_with_free_text_lines(config, fake_vision):
    order = parse_order(PNG, "image/png", config=config, vision=fake_vision(FREE_TEXT_PHOTO))

    assert order.client == "Kanali"
    assert [(it.product_name, it.quantity_text) for it in order.items] == [
        ("albahaca", "12 bandejas"), ("Perejil", "3 kg")]
    assert [it.id for it in order.items] == ["albahaca-0", "perejil-1"]
    assert all(it.label_type == LabelType.KANALI for it in order.items)
    assert order.packing_date is None


def test_vision_failure_degrades(config, fake_vision):
    vision = fake_vision(error=VisionServiceError("quota exceeded"))
    result = parse_order_document(PNG, "image/jpeg", "foto.jpg", config=config, vision=vision)

    assert isinstance(result, DegradedParse)
    assert result.order.items == []
    assert "quota exceeded" in result.order.notes
    assert result.order.degraded


def test_empty_recognition_degrades(config, fake_vision):
    result = parse_order_document(PNG, "image/png", config=config, vision=fake_vision("  \n "))
    assert isinstance(result, DegradedParse)
    assert result.order.items == []
    assert result.order.raw_text == ""


def test_text_without_items_needs_manual_review(config, fake_vision):
    text = "Hiperdino\nFecha envasado 02-05-2024\nGracias por su pedido"
    result = parse_order_document(PNG, "image/png", config=config, vision=fake_vision(text))

    assert isinstance(result, DegradedParse)
    assert "manual review" in result.order.notes
    assert result.order.items == []
    assert result.order.raw_text
    assert result.order.packing_date == "2024-05-02"


def test_unavailable_backend_degrades(config):
    config.vision_backend = "nope"
    result = parse_order_document(PNG, "image/png", config=config)
    assert isinstance(result, DegradedParse)
    assert "nope" in result.order.notes


def test_pdf_pages_merge_in_order(config, fake_vision, monkeypatch):
    monkeypatch.setattr("vision_orders.extract_pdf.render_pages",
                        lambda buffer, dpi=300, page_limit=10: [b"page-1", b"page-2"])
    vision = fake_vision(pages={
        b"page-1": "Cliente: Aldi\nFecha envasado 01/02/2025\n5 cajas albahaca",
        b"page-2": "Cliente: Lidl\n3 manojos cilantro\n2 kg perejil",
    })
    result = parse_order_document(PDF, "application/pdf", "albaran.pdf", config=config, vision=vision)

    assert isinstance(result, CleanParse)
    order = result.order
    assert vision.calls == [b"page-1", b"page-2"]
    assert order.client == "Aldi"
    assert order.packing_date == "2025-02-01"
    assert [it.id for it in order.items] == ["albahaca-0", "cilantro-1", "perejil-2"]
    assert all(it.label_type == LabelType.ALDI for it in order.items)
    assert order.raw_text.index("albahaca") < order.raw_text.index("perejil")


def test_pdf_page_failure_degrades_whole_document(config, fake_vision, monkeypatch):
    monkeypatch.setattr("vision_orders.extract_pdf.render_pages",
                        lambda buffer, dpi=300, page_limit=10: [b"page-1", b"page-2"])
    vision = fake_vision(pages={
        b"page-1": "5 cajas albahaca",
        b"page-2": VisionServiceError("timeout"),
    })
    result = parse_order_document(PDF, "application/pdf", config=config, vision=vision)

    assert isinstance(result, DegradedParse)
    assert result.order.items == []
    assert "page 2" in result.order.notes
    assert "albahaca" in result.order.raw_text


def test_pdf_render_failure_degrades(config, fake_vision, monkeypatch):
    def broken(buffer, dpi=300, page_limit=10):
        raise RuntimeError("poppler missing")

    monkeypatch.setattr("vision_orders.extract_pdf.render_pages", broken)
    result = parse_order_document(PDF, "application/pdf", config=config, vision=fake_vision("x"))
    assert isinstance(result, DegradedParse)
    assert "poppler missing" in result.order.notes


def test_unsupported_content_degrades(config):
    result = parse_order_document(b"hello", "application/octet-stream", "nota.bin", config=config)
    assert isinstance(result, DegradedParse)
    assert result.order.items == []


@pytest.mark.parametrize("buffer", [b"", None])
def test_missing_buffer_raises(buffer, config):
    with pytest.raises(InvalidInputError):
        parse_order_document(buffer, "text/csv", config=config)


def test_oversize_buffer_raises():
    config = ProcessingConfig(max_file_size_mb=1)
    with pytest.raises(InvalidInputError):
        parse_order_document(b"x" * (1024 * 1024 + 1), "text/csv", config=config)


@pytest.mark.parametrize("mime,name,buffer,expected", [
    ("application/pdf", None, None, ContentFamily.PDF),
    ("image/jpeg; charset=binary", None, None, ContentFamily.IMAGE),
    ("text/csv", "x.pdf", None, ContentFamily.TABULAR),
    (None, "FOTO.JPG", None, ContentFamily.IMAGE),
    ("application/octet-stream", "pedido.xlsx", None, ContentFamily.TABULAR),
    (None, None, b"%PDF-1.7", ContentFamily.PDF),
    (None, "scan", b"\xff\xd8\xff\xe0", ContentFamily.IMAGE),
    (None, None, b"plain", ContentFamily.UNSUPPORTED),
    (None, None, None, ContentFamily.UNSUPPORTED),
])
def test_detect_content_family(mime, name, buffer, expected):
    assert detect_content_family(mime, name, buffer) == expected


def test_client_name_detection():
    assert parse_client_name("Albaran\nCliente: Frutas Pérez\nMERCADONA") == "Frutas Pérez"
    assert parse_client_name("Pedido semanal\nHiperDino Las Palmas") == "HiperDino Las Palmas"
    assert parse_client_name("HiperDino", explicit_only=True) == ""
    assert parse_client_name("") == ""


@pytest.mark.parametrize("line,expected", [
    ("12 bandejas albahaca", ("albahaca", "12 bandejas")),
    ("• 3 kg de acelgas", ("acelgas", "3 kg")),
    ("Cebollino x 20", ("Cebollino", "20")),
    ("Pedido 4471", None),
    ("Tel 928 123 456", None),
    ("Fecha 12/03/2024", None),
    ("Gracias", None),
])
def test_line_item_patterns(line, expected):
    row = try_parse_line_for_item(line)
    if expected is None:
        assert row is None
    else:
        assert (row.product, row.quantity_text) == expected
