"""Application settings -- reads from environment and ``.env`` file.

Both processes (the bot and the media host) read the same settings object;
each only looks at the keys it needs.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from ..util.env_file import EnvFile

SECRET_ENV_KEYS: frozenset[str] = frozenset({
    "CIRCUIT_CLIENT_SECRET",
})


class Settings:
    """Runtime configuration sourced from environment variables and ``.env``."""

    _DATA_DIR_ENV: ClassVar[str] = "STREAMBOT_DATA_DIR"

    def __init__(self) -> None:
        # Resolve .env path: explicit DOTENV_PATH > data_dir/.env > CWD/.env
        dotenv = os.getenv("DOTENV_PATH")
        if not dotenv:
            data_dir = os.getenv(self._DATA_DIR_ENV)
            dotenv = str(Path(data_dir) / ".env") if data_dir else ".env"
        self.env = EnvFile(dotenv)
        self.reload()

    def reload(self) -> None:
        """Re-read the ``.env`` file and environment variables."""
        e = self._read

        self.circuit_domain: str = e("CIRCUIT_DOMAIN") or "circuitsandbox.net"
        self.circuit_client_id: str = e("CIRCUIT_CLIENT_ID")
        self.circuit_client_secret: str = e("CIRCUIT_CLIENT_SECRET")
        self.circuit_scope: str = e("CIRCUIT_SCOPE") or "ALL"

        self.bot_first_name: str = e("BOT_FIRST_NAME")
        self.bot_last_name: str = e("BOT_LAST_NAME")
        self.bot_nick_name: str = e("BOT_NICK_NAME") or self.bot_first_name or "streambot"
        self.bot_job_title: str = e("BOT_JOB_TITLE")
        self.bot_company: str = e("BOT_COMPANY")

        self.target_conv_id: str = e("TARGET_CONV_ID")
        self.bot_owner_email: str = e("BOT_OWNER_EMAIL")

        self.log_level: str = (e("LOG_LEVEL") or "INFO").upper()
        self.sdk_log_level: str = (e("SDK_LOG_LEVEL") or "WARNING").upper()

        self.bot_port: int = int(e("BOT_PORT") or "3978")
        self.webhook_url: str = e("WEBHOOK_URL")

        self.media_port: int = int(e("MEDIA_PORT") or "3979")
        self.media_host_url: str = e("MEDIA_HOST_URL") or f"http://localhost:{self.media_port}"
        self.media_backend: str = e("MEDIA_BACKEND")

        self.keepalive_seconds: float = float(e("KEEPALIVE_SECONDS") or "10")
        self.settle_seconds: float = float(e("SETTLE_SECONDS") or "2")
        self.remote_stream_seconds: float = float(e("REMOTE_STREAM_SECONDS") or "5")
        self.chunk_seconds: float = float(e("CHUNK_SECONDS") or "1.5")
        self.logon_settle_seconds: float = float(e("LOGON_SETTLE_SECONDS") or "5")

    # -- derived paths -----------------------------------------------------

    @property
    def data_dir(self) -> Path:
        return Path(os.getenv(self._DATA_DIR_ENV, str(Path.home() / ".streambot")))

    @property
    def recordings_dir(self) -> Path:
        return self.data_dir / "recordings"

    @property
    def events_path(self) -> str:
        return "/api/events"

    @property
    def stream_path(self) -> str:
        return "/api/stream"

    @property
    def credentials_configured(self) -> bool:
        return bool(self.circuit_client_id and self.circuit_client_secret)

    # -- helpers -----------------------------------------------------------

    def _read(self, key: str) -> str:
        return self.env.read(key) or os.getenv(key, "")

    def ensure_dirs(self) -> None:
        for d in (self.data_dir, self.recordings_dir):
            d.mkdir(parents=True, exist_ok=True)

    def redacted(self) -> dict[str, str]:
        """Env-file values with secrets masked, for startup logging."""
        out: dict[str, str] = {}
        for key, value in self.env.read_all().items():
            if key in SECRET_ENV_KEYS and value:
                value = value[:4] + "..." if len(value) > 8 else "***"
            out[key] = value
        return out


# Module-level singleton
cfg = Settings()
