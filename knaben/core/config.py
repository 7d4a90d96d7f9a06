"""
Add-on configuration.

Built once at startup and handed to every component that needs it, so no
module reads process-wide constants on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import os
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote


DEFAULT_SETTINGS: Dict[str, Any] = {
    "host": "0.0.0.0",
    "port": 7010,
    "base_url": "https://knaben.org",
    "search_path": "/search?q={query}",
    "provider_label": "Knaben",
    "metadata_base_url": "https://v3-cinemeta.strem.io",
    "user_agent": "Knaben/1.0",
    "request_timeout_seconds": 15.0,
    "request_retries": 1,
    "retry_backoff_seconds": 0.5,
    "resolution_deadline_seconds": 60.0,
}

ENV_KEYS = {
    "host": "KNABEN_HOST",
    "port": "KNABEN_PORT",
    "base_url": "KNABEN_BASE_URL",
    "search_path": "KNABEN_SEARCH_PATH",
    "provider_label": "KNABEN_PROVIDER_LABEL",
    "metadata_base_url": "KNABEN_METADATA_URL",
    "user_agent": "KNABEN_USER_AGENT",
    "request_timeout_seconds": "KNABEN_REQUEST_TIMEOUT_SECONDS",
    "request_retries": "KNABEN_REQUEST_RETRIES",
    "retry_backoff_seconds": "KNABEN_RETRY_BACKOFF_SECONDS",
    "resolution_deadline_seconds": "KNABEN_RESOLUTION_DEADLINE_SECONDS",
}


@dataclass(frozen=True)
class AddonConfig:
    host: str = DEFAULT_SETTINGS["host"]
    port: int = DEFAULT_SETTINGS["port"]
    base_url: str = DEFAULT_SETTINGS["base_url"]
    search_path: str = DEFAULT_SETTINGS["search_path"]
    provider_label: str = DEFAULT_SETTINGS["provider_label"]
    metadata_base_url: str = DEFAULT_SETTINGS["metadata_base_url"]
    user_agent: str = DEFAULT_SETTINGS["user_agent"]
    request_timeout_seconds: float = DEFAULT_SETTINGS["request_timeout_seconds"]
    request_retries: int = DEFAULT_SETTINGS["request_retries"]
    retry_backoff_seconds: float = DEFAULT_SETTINGS["retry_backoff_seconds"]
    resolution_deadline_seconds: float = DEFAULT_SETTINGS["resolution_deadline_seconds"]

    def search_url(self, query: str) -> str:
        return self.base_url.rstrip("/") + self.search_path.replace("{query}", quote(query, safe=""))

    def with_overrides(self, **values: Any) -> "AddonConfig":
        clean = {k: v for k, v in values.items() if v is not None}
        return replace(self, **clean) if clean else self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AddonConfig":
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for field_name, env_key in ENV_KEYS.items():
            raw = str(environ.get(env_key, "") or "").strip()
            if field_name == "port" and not raw:
                raw = str(environ.get("PORT", "") or "").strip()
            if not raw:
                continue
            default = DEFAULT_SETTINGS[field_name]
            try:
                values[field_name] = type(default)(raw)
            except ValueError:
                # Malformed numbers keep the default.
                continue
        if "base_url" in values:
            values["base_url"] = values["base_url"].rstrip("/")
        return cls(**values)
