# tuition_center/core/logging.py
"""Logging configuration."""
import logging
import sys
from .config import settings

def setup_logging():
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # SQL echo is noisy; only surface it in development
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.environment == 'development' else logging.WARNING
    )
