"""App config via env vars"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Storage backend: "tikv" for the real cluster, "memory" for local runs
    STORE_BACKEND: str = "tikv"
    PD_ADDRS: list[str] = ["pd-server:2379"]

    # Client pool + background monitor
    CLIENT_POOL_SIZE: int = 10
    MONITOR_INTERVAL_SECONDS: float = 30.0
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True
    LOG_DIR: str = "."
    LOG_FILE_NAME: str = "blob_api.log"
    LOG_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 5

    model_config = {"env_prefix": "", "case_sensitive": True, "env_file": ".env"}


settings = Settings()
