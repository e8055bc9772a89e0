import os
import logging
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_MODEL = 'gemini-2.5-flash-image'


@dataclass
class Config:
    api_key: str = None
    model: str = DEFAULT_MODEL
    base_url: str = None
    preview_max_width: int = 800
    max_upload_mb: int = 20
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls):
        """Читает настройки из окружения (и .env, если он есть)."""
        load_dotenv()
        return cls(
            api_key=os.getenv('API_KEY') or os.getenv('GEMINI_API_KEY'),
            model=os.getenv('GEMINI_MODEL', DEFAULT_MODEL),
            base_url=os.getenv('GEMINI_BASE_URL') or None,
            preview_max_width=int(os.getenv('PREVIEW_MAX_WIDTH', 800)),
            max_upload_mb=int(os.getenv('MAX_UPLOAD_MB', 20)),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        )

    @property
    def max_content_length(self):
        return self.max_upload_mb * 1024 * 1024


def setup_logging(level='INFO'):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
