from generate_mocks import generate_samples
from vision_orders.models import CleanParse
from vision_orders.parser import parse_order_document


def test_generated_spreadsheets_parse_cleanly(tmp_path, config):
    files = generate_samples(n_pdf=1, n_excel=2, n_csv=2, n_img=1, out_dir=tmp_path, seed=7)

    assert len(files) == 6
    assert all(f.exists() and f.stat().st_size > 0 for f in files)
    for f in files:
        if f.suffix not in (".xlsx", ".csv"):
            continue
        result = parse_order_document(f.read_bytes(), None, f.name, config=config)
        assert isinstance(result, CleanParse), f.name
        assert result.order.items
        assert result.order.client
