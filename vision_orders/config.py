# vision_orders/config.py - Configuration management for different deployment scenarios
import os
import sys
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

VISION_BACKENDS = ("google", "tesseract", "openai")


@dataclass
class ProcessingConfig:
    """Configuration for the order ingestion and label pipeline"""

    # Vision settings
    vision_backend: str = "google"
    google_credentials_json: Optional[str] = None
    google_credentials_b64: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_vision_model: str = "gpt-4o-mini"
    vision_timeout: int = 60

    # Processing settings
    max_file_size_mb: int = 50
    ocr_dpi: int = 300
    ocr_lang: str = "spa"
    pdf_page_limit: int = 10

    # Label output
    labels_bucket: str = "etiquetas_final"
    labels_folder: str = "vision"
    output_dir: str = "outputs"

    # Monitoring
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> 'ProcessingConfig':
        """Create configuration from environment variables"""
        return cls(
            vision_backend=os.getenv('VISION_BACKEND', 'google').lower(),
            google_credentials_json=os.getenv('GOOGLE_VISION_CREDENTIALS_JSON'),
            google_credentials_b64=os.getenv('GOOGLE_VISION_CREDENTIALS_B64'),
            openai_api_key=os.getenv('OPENAI_API_KEY'),
            openai_vision_model=os.getenv('OPENAI_VISION_MODEL', 'gpt-4o-mini'),
            vision_timeout=int(os.getenv('VISION_TIMEOUT', '60')),

            max_file_size_mb=int(os.getenv('MAX_FILE_SIZE_MB', '50')),
            ocr_dpi=int(os.getenv('OCR_DPI', '300')),
            ocr_lang=os.getenv('OCR_LANG', 'spa'),
            pdf_page_limit=int(os.getenv('PDF_PAGE_LIMIT', '10')),

            labels_bucket=os.getenv('SUPABASE_ETIQUETAS_BUCKET', 'etiquetas_final'),
            labels_folder=os.getenv('SUPABASE_ALBARANES_FOLDER', 'vision'),
            output_dir=os.getenv('OUTPUT_DIR', 'outputs'),

            log_level=os.getenv('LOG_LEVEL', 'INFO'),
        )

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    def validate(self) -> bool:
        """Validate configuration settings"""
        issues = []

        if self.vision_backend not in VISION_BACKENDS:
            issues.append(f"vision_backend must be one of {', '.join(VISION_BACKENDS)}")

        if self.vision_backend == "openai" and not self.openai_api_key:
            issues.append("openai vision backend selected but OPENAI_API_KEY not provided")

        if self.max_file_size_mb < 1:
            issues.append("max_file_size_mb must be >= 1")

        if self.pdf_page_limit < 1:
            issues.append("pdf_page_limit must be >= 1")

        if self.ocr_dpi < 72:
            issues.append("ocr_dpi must be >= 72")

        for issue in issues:
            logger.warning(f"Configuration issue: {issue}")

        return not issues


def setup_logging(config: Optional[ProcessingConfig] = None) -> None:
    """Configure application logging."""
    level = (config.log_level if config else "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Set third-party loggers to WARNING
    for name in ("urllib3", "httpx", "openai", "google", "PIL"):
        logging.getLogger(name).setLevel(logging.WARNING)


# Environment-specific configurations
def get_development_config() -> ProcessingConfig:
    """Configuration for development environment"""
    config = ProcessingConfig.from_env()
    config.log_level = "DEBUG"
    return config


def get_production_config() -> ProcessingConfig:
    """Configuration for production environment"""
    config = ProcessingConfig.from_env()
    config.log_level = "INFO"
    return config


def get_testing_config() -> ProcessingConfig:
    """Configuration for testing environment"""
    config = ProcessingConfig()
    config.vision_backend = "tesseract"  # no network calls in tests
    config.log_level = "WARNING"
    config.output_dir = "tests/outputs"
    return config


# Configuration factory
def get_config(environment: str = None) -> ProcessingConfig:
    """Get configuration for specified environment"""
    env = environment or os.getenv('ENVIRONMENT', 'development')

    if env == 'production':
        return get_production_config()
    elif env == 'testing':
        return get_testing_config()
    else:
        return get_development_config()
