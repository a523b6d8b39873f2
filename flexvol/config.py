from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import urlparse


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except Exception:
        return default


def _str_env(name: str, default: str) -> str:
    return str(os.getenv(name, default)).strip()


STORAGE_API_URL = _str_env("FLEXVOL_STORAGE_API_URL", "http://127.0.0.1:9999/ubiquity_storage")
BACKEND = _str_env("FLEXVOL_BACKEND", "")
LOG_FILE = _str_env("FLEXVOL_LOG_FILE", "/var/log/flexvol/flexvol.log")
LOG_LEVEL = _str_env("FLEXVOL_LOG_LEVEL", "INFO").upper()
REQUEST_TIMEOUT = _int_env("FLEXVOL_REQUEST_TIMEOUT", 30)
SERVICE_HOST = _str_env("FLEXVOL_SERVICE_HOST", "127.0.0.1")
SERVICE_PORT = _int_env("FLEXVOL_SERVICE_PORT", 8010)


@dataclass
class PluginConfig:
    storage_api_url: str = STORAGE_API_URL
    backend: str = BACKEND
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL
    request_timeout: int = REQUEST_TIMEOUT
    service_host: str = SERVICE_HOST
    service_port: int = SERVICE_PORT

    @classmethod
    def from_env(cls) -> "PluginConfig":
        """Read settings from the environment at call time"""
        return cls(
            storage_api_url=_str_env("FLEXVOL_STORAGE_API_URL", STORAGE_API_URL),
            backend=_str_env("FLEXVOL_BACKEND", BACKEND),
            log_file=_str_env("FLEXVOL_LOG_FILE", LOG_FILE),
            log_level=_str_env("FLEXVOL_LOG_LEVEL", LOG_LEVEL).upper(),
            request_timeout=_int_env("FLEXVOL_REQUEST_TIMEOUT", REQUEST_TIMEOUT),
            service_host=_str_env("FLEXVOL_SERVICE_HOST", SERVICE_HOST),
            service_port=_int_env("FLEXVOL_SERVICE_PORT", SERVICE_PORT),
        )

    def validate(self) -> None:
        parsed = urlparse(str(self.storage_api_url or "").strip())
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("storage_api_url must be a valid http(s) URL")
        if int(self.request_timeout) <= 0:
            raise ValueError("request_timeout must be positive")
        if int(self.service_port) < 1 or int(self.service_port) > 65535:
            raise ValueError("service_port must be in range 1..65535")
        if not str(self.service_host or "").strip():
            raise ValueError("service_host is required")
