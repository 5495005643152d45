# tuition_center/core/config.py
"""Application configuration using Pydantic."""
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    database_url: str
    jwt_secret_key: str

    app_version: str = '1.0.0'
    environment: str = 'development'
    log_level: str = 'info'
    allowed_origins: List[str] = ['http://localhost:5173']

    jwt_algorithm: str = 'HS256'
    jwt_expire_hours: int = 24

    # Wall-clock zone used for "same calendar day" and "now"
    schedule_timezone: str = 'Asia/Singapore'

    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    create_schema_on_startup: bool = True

    model_config = {
        'env_file': '.env',
        'extra': 'ignore'
    }

settings = Settings()
