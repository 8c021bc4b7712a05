import logging
import os
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

logger = logging.getLogger(__name__)

ENV_PREFIX = "KV_INSPECTOR_"


class InspectorSettings(BaseSettings):
    """Inspector configuration loaded from environment variables and .env."""

    # Server
    host: str = Field(default="0.0.0.0", description="Interface the inspector listens on")
    port: int = Field(default=8089, description="Port for the inspector web server (0 picks a free port)")
    endpoint: str = Field(default="/inspect", description="Path of the record browsing page")
    resume_path: str = Field(default="/resume", description="Path the operator visits to resume the workload")
    startup_timeout: float = Field(default=5.0, description="Seconds to wait for the listener to bind")

    # Row mapping
    default_prefix: str = Field(default="analysis:", description="Prefix used when the request has none")
    key_separator: str = Field(default=":", description="Separator between key segments for the default row mapper")

    # Store
    db_path: str = Field(default="/tmp/database/debug", description="Directory of the store opened by the standalone CLI")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    log_format: str = Field(default='%(asctime)s - %(name)s - %(levelname)s - %(message)s', description="Logging format string")
    log_to_file: bool = Field(default=False, description="Also log to a rotating file")
    log_file_path: str = Field(default="logs/inspector.log", description="Path to the log file (directory will be created)")

    # Tracing
    tracing_enabled: bool = Field(default=False, description="Export OpenTelemetry spans over OTLP")

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        env_prefix=ENV_PREFIX,
        extra='ignore',
        case_sensitive=False
    )


def load_settings(env_file: Optional[str] = '.env') -> InspectorSettings:
    """Load settings from an optional .env file and the environment."""
    if env_file:
        try:
            from dotenv import load_dotenv
            env_loaded = load_dotenv(env_file, override=False)
            logger.debug(f".env loading result for {env_file}: {env_loaded}")
        except Exception as e:
            logger.warning(f"Failed to load {env_file}: {e}")

    inspector_vars = [k for k in os.environ if k.upper().startswith(ENV_PREFIX)]
    logger.debug(f"Found {len(inspector_vars)} {ENV_PREFIX} environment variables: {inspector_vars}")

    settings = InspectorSettings(_env_file=env_file or None)
    logger.debug(f"Inspector configuration loaded: port={settings.port}, endpoint={settings.endpoint}, default_prefix={settings.default_prefix}")
    return settings
