from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

log = logging.getLogger(__name__)

APP_DIR = Path(os.environ.get("GATEKEEPER_HOME") or (Path.home() / ".gatekeeper"))

SETTINGS_FILE = APP_DIR / "gatekeeper.json"

MIN_POLL_SECONDS = 1.0

DEFAULTS: Dict[str, Any] = {
    # country gating
    "allowed_country_codes": ["EG"],
    "geo_ip_url": "https://ipapi.co/json/",   # { "country": "EG", ... }
    "country_code_json_key": "country",       # ipwho.is: "country_code"
    "geo_fallbacks": ["locale_country", "timezone_hint"],
    "timezone_hint": "cairo",
    # remote control (kill switch); empty URL disables the gate
    "remote_control_url": "",
    "remote_poll_seconds": 300.0,
    "remote_fail_closed": False,
    "request_timeout": 10.0,
    # admin codes (SHA-256 hex)
    "lock_code_hash_hex": "",
    "unlock_code_hash_hex": "",
    # messages
    "block_message_outside": "Please contact the support team.",
    "block_message_shutdown": "Application is temporarily disabled. Please contact the support team.",
    # misc
    "app_version": "1.0.0",
    "locale": "en",                           # "ko", "ko_KR.UTF-8" or "auto" (OS locale)
    "verbose_logs": True,
}


def _is_kind(value: Any, default: Any) -> bool:
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, float):
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if isinstance(default, list):
        return isinstance(value, list) and all(isinstance(v, str) for v in value)
    return isinstance(value, type(default))


def _checked(name: str, value: Any, default: Any) -> Any:
    """Value if it has the same kind as its default, else a copy of the default."""
    if _is_kind(value, default):
        return list(value) if isinstance(value, list) else value
    if value is not None:
        log.warning("Setting '%s' has unusable value %r; using default %r", name, value, default)
    return list(default) if isinstance(default, list) else default


@dataclass
class GatekeeperConfig:
    """
    Loaded once at startup and read-only during a run, except for the
    shutdown message which the remote service may override.
    """
    allowed_country_codes: List[str] = field(default_factory=lambda: ["EG"])
    geo_ip_url: str = DEFAULTS["geo_ip_url"]
    country_code_json_key: str = DEFAULTS["country_code_json_key"]
    geo_fallbacks: List[str] = field(default_factory=lambda: list(DEFAULTS["geo_fallbacks"]))
    timezone_hint: str = DEFAULTS["timezone_hint"]
    remote_control_url: str = ""
    remote_poll_seconds: float = DEFAULTS["remote_poll_seconds"]
    remote_fail_closed: bool = False
    request_timeout: float = DEFAULTS["request_timeout"]
    lock_code_hash_hex: str = ""
    unlock_code_hash_hex: str = ""
    block_message_outside: str = DEFAULTS["block_message_outside"]
    block_message_shutdown: str = DEFAULTS["block_message_shutdown"]
    app_version: str = DEFAULTS["app_version"]
    locale: str = DEFAULTS["locale"]
    verbose_logs: bool = True

    def __post_init__(self):
        for name, default in DEFAULTS.items():
            setattr(self, name, _checked(name, getattr(self, name), default))
        self.allowed_country_codes = [
            c.strip().upper() for c in self.allowed_country_codes if c.strip()
        ]
        self.remote_poll_seconds = max(MIN_POLL_SECONDS, float(self.remote_poll_seconds))
        self.request_timeout = float(self.request_timeout)
        if self.request_timeout <= 0:
            log.warning("Setting 'request_timeout' must be positive; using %s", DEFAULTS["request_timeout"])
            self.request_timeout = DEFAULTS["request_timeout"]
        self.lock_code_hash_hex = self.lock_code_hash_hex.strip().lower()
        self.unlock_code_hash_hex = self.unlock_code_hash_hex.strip().lower()
        self._message_lock = threading.Lock()

    def is_country_allowed(self, code: Optional[str]) -> bool:
        if not code:
            return False
        return code.strip().upper() in self.allowed_country_codes

    @property
    def shutdown_message(self) -> str:
        with self._message_lock:
            return self.block_message_shutdown

    def override_shutdown_message(self, message: str) -> None:
        """Server-provided message; kept until the next override or restart."""
        with self._message_lock:
            self.block_message_shutdown = message

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GatekeeperConfig":
        known = {k: v for k, v in data.items() if k in DEFAULTS}
        return cls(**known)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    path = path or SETTINGS_FILE
    try:
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("top level is not an object")
                merged = DEFAULTS.copy()
                merged.update(data)
                return merged
    except (OSError, ValueError) as e:
        log.warning("Could not read settings %s: %s (using defaults)", path, e)
    return DEFAULTS.copy()


def save_settings(s: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or SETTINGS_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(s, f, ensure_ascii=False, indent=2)
    except OSError as e:
        log.warning("Could not write settings %s: %s", path, e)


def load_config(path: Optional[Path] = None) -> GatekeeperConfig:
    return GatekeeperConfig.from_dict(load_settings(path))


def save_config(config: GatekeeperConfig, path: Optional[Path] = None) -> None:
    save_settings(config.to_dict(), path)
