from vision_orders.config import ProcessingConfig, get_config


def test_from_env(monkeypatch):
    monkeypatch.setenv("VISION_BACKEND", "OpenAI")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("PDF_PAGE_LIMIT", "3")
    monkeypatch.setenv("SUPABASE_ETIQUETAS_BUCKET", "etiquetas_test")
    monkeypatch.setenv("SUPABASE_ALBARANES_FOLDER", "albaranes")
    cfg = ProcessingConfig.from_env()

    assert cfg.vision_backend == "openai"
    assert cfg.pdf_page_limit == 3
    assert cfg.labels_bucket == "etiquetas_test"
    assert cfg.labels_folder == "albaranes"
    assert cfg.validate()


def test_validate_reports_issues():
    assert not ProcessingConfig(vision_backend="abbyy").validate()
    assert not ProcessingConfig(vision_backend="openai").validate()
    assert not ProcessingConfig(max_file_size_mb=0).validate()
    assert ProcessingConfig().max_file_size_bytes == 50 * 1024 * 1024


def test_profiles(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    assert get_config("testing").vision_backend == "tesseract"
    assert get_config("production").log_level == "INFO"
    assert get_config().log_level == "DEBUG"
