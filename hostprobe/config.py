from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    # --- app ---
    app_name: str = "Host Telemetry"
    debug: bool = False

    # --- model directory ---
    model_dir: str = "/publicdata/model"
    disk_device: str = "/dev/nvme1n1p1"
    min_model_size_bytes: int = 10 * 1024 * 1024

    # --- collection ---
    ports_cache_seconds: float = 5.0  # reuse the last port snapshot this long
    command_timeout: float = 10.0  # seconds before an external tool is killed

    # --- server ---
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: list[str] = ["*"]
    frontend_dist: str = str(BASE_DIR.parent / "frontend" / "dist")

    model_config = {
        "env_file": ".env",
        "env_prefix": "HOSTPROBE_",
        "protected_namespaces": (),
    }


settings = Settings()
