from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    # Vault used by the CLI and the web API when no path is given.
    vault_path: str = os.getenv("NOTEGRAPH_VAULT_PATH", "./vault")
    note_extension: str = os.getenv("NOTEGRAPH_NOTE_EXTENSION", ".md")
    cache_enabled: bool = _env_flag("NOTEGRAPH_CACHE_ENABLED", "1")

    # Change polling
    poll_interval_s: float = float(os.getenv("NOTEGRAPH_POLL_INTERVAL", "5.0"))

    # Web API
    host: str = os.getenv("NOTEGRAPH_HOST", "127.0.0.1")
    port: int = int(os.getenv("NOTEGRAPH_PORT", "8000"))

    log_level: str = os.getenv("NOTEGRAPH_LOG_LEVEL", "WARNING")
