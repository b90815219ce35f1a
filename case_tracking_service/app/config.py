# Application Configuration using Pydantic BaseSettings
from pydantic_settings import BaseSettings
from typing import Optional

class AppSettings(BaseSettings):
    # Backend case API
    CASE_API_BASE_URL: str = "http://localhost:8080"
    CASE_API_USERNAME: Optional[str] = None
    CASE_API_PASSWORD: Optional[str] = None
    DEFAULT_HTTP_TIMEOUT: float = 10.0

    # Snapshot freshness
    FOREGROUND_DEBOUNCE_SECONDS: float = 1.0
    PERIODIC_REFRESH_SECONDS: float = 30.0
    CROSS_TAB_REFRESH_KEY: str = "caseRefreshTrigger"

    # Shared signal store ("memory" or "file")
    SIGNAL_STORE_BACKEND: str = "memory"
    SIGNAL_STORE_DIR: str = ".case_signals"
    SIGNAL_STORE_POLL_SECONDS: float = 0.5

    # Case list views
    HIGH_PRIORITY_THRESHOLD: int = 8

    # Role of the current session (ADMIN, JUDGE, CLERK). None disables the client-side role gate.
    CLIENT_ROLE: Optional[str] = None

    # Observability
    LOG_LEVEL: str = "INFO"
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT: Optional[str] = None
    OTEL_EXPORTER_OTLP_METRICS_ENDPOINT: Optional[str] = None
    SERVICE_NAME_API: str = "case-tracking-view-adapter"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

# Instantiate settings to be imported by other modules
settings = AppSettings()

import logging
logger = logging.getLogger(__name__)
# Avoid logging credentials; only the target URL is useful here.
logger.info(f"Application settings module initialized. Case API: {settings.CASE_API_BASE_URL}")
