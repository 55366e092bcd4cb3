from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

import requests

from gatekeeper.fallbacks import load_fallbacks
from gatekeeper.security.fingerprint import compute_fingerprint, platform_name
from gatekeeper.settings import GatekeeperConfig

log = logging.getLogger(__name__)

STATUS_LIVE = "live"
STATUS_LOCKED = "locked"


def add_query(url: str, key: str, value: Any) -> str:
    return f"{url}{'&' if '?' in url else '?'}{key}={value}"


def _as_bool(v: Any) -> bool:
    # JSON booleans, plus 0/1 from servers that emit ints
    if isinstance(v, bool):
        return v
    if isinstance(v, int) and v in (0, 1):
        return bool(v)
    raise ValueError(f"not a boolean: {v!r}")


def _as_epoch(v: Any) -> Optional[int]:
    """None (absent/null) means no expiry; anything present must be a number."""
    if v is None:
        return None
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ValueError(f"not an epoch: {v!r}")
    return int(v)


@dataclass
class RemoteControlResponse:
    shutdown: bool = False
    message: Optional[str] = None
    force_allow: bool = False
    force_until: Optional[int] = None   # epoch seconds; None/0 = no expiry

    @classmethod
    def from_json(cls, data: Any) -> Optional["RemoteControlResponse"]:
        """None when the payload isn't an object or a directive field is mistyped."""
        if not isinstance(data, dict):
            return None
        msg = data.get("message")
        try:
            return cls(
                shutdown=_as_bool(data.get("shutdown", False)),
                message=msg if isinstance(msg, str) else None,
                force_allow=_as_bool(data.get("force_allow", False)),
                force_until=_as_epoch(data.get("force_until")),
            )
        except (ValueError, OverflowError) as e:
            log.warning("Remote control field rejected: %s", e)
            return None

    def allow_window_open(self, now: float) -> bool:
        if not self.force_allow:
            return False
        if self.force_until and self.force_until > 0:
            return now <= self.force_until
        return True


@dataclass
class RemoteOutcome:
    """Result of one kill-switch check after the fail-open/closed policy."""
    remote_pass: bool
    response: Optional[RemoteControlResponse] = None
    reachable: bool = True


def extract_country_code(body: str, key: str) -> Optional[str]:
    if not body:
        return None
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    val = data.get(key)
    if val is None:
        # providers disagree on case ("Country" vs "country")
        for k, v in data.items():
            if isinstance(k, str) and k.lower() == (key or "").lower():
                val = v
                break
    if not isinstance(val, str) or not val.strip():
        return None
    return val.strip().upper()


class RemoteControlClient:
    """
    Talks to the geo-IP provider and the remote-control (kill switch)
    endpoint. Every call carries a fixed timeout and is never retried here;
    network and parse errors are folded into booleans, never raised.
    """

    def __init__(self, config: GatekeeperConfig,
                 session: Optional[requests.Session] = None,
                 fallbacks: Optional[List[Any]] = None,
                 clock: Callable[[], float] = time.time,
                 device_id: Optional[str] = None):
        self.config = config
        self.session = session or requests.Session()
        self.fallbacks = load_fallbacks(config.geo_fallbacks) if fallbacks is None else fallbacks
        self.clock = clock
        self._device_id = device_id

    @property
    def timeout(self) -> float:
        return self.config.request_timeout

    @property
    def device_id(self) -> str:
        if self._device_id is None:
            self._device_id = compute_fingerprint()
        return self._device_id

    def _cache_bust(self, url: str) -> str:
        return add_query(url, "_cb", int(self.clock() * 1000))

    # ---------------- GEO ----------------
    def check_geo(self) -> bool:
        cfg = self.config
        if cfg.geo_ip_url:
            try:
                r = self.session.get(self._cache_bust(cfg.geo_ip_url), timeout=self.timeout)
                r.raise_for_status()
                code = extract_country_code(r.text, cfg.country_code_json_key)
                if code:
                    allowed = cfg.is_country_allowed(code)
                    log.info("Geo-IP country=%s allowed=%s", code, allowed)
                    if allowed:
                        return True
                else:
                    log.warning("Geo-IP response has no '%s' field", cfg.country_code_json_key)
            except requests.RequestException as e:
                log.warning("Geo-IP lookup failed: %s", e)

        for fb in self.fallbacks:
            try:
                if fb.allows(cfg):
                    log.info("Geo fallback '%s' allowed access", fb.name)
                    return True
            except Exception:
                log.debug("Geo fallback '%s' errored", fb.name, exc_info=True)
        return False

    # ---------------- Remote kill switch ----------------
    def check_remote(self, force_no_cache: bool = False) -> RemoteOutcome:
        cfg = self.config
        if not cfg.remote_control_url:
            return RemoteOutcome(remote_pass=True)

        url = self._cache_bust(cfg.remote_control_url) if force_no_cache else cfg.remote_control_url
        try:
            r = self.session.get(url, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            remote_pass = not cfg.remote_fail_closed
            log.warning("Remote control unreachable (%s) -> %s", e,
                        "fail-open" if remote_pass else "fail-closed")
            return RemoteOutcome(remote_pass=remote_pass, reachable=False)

        try:
            dto = RemoteControlResponse.from_json(r.json())
        except ValueError:
            dto = None
        if dto is None:
            log.warning("Remote control payload malformed; treating as no directive")
            return RemoteOutcome(remote_pass=True)
        return RemoteOutcome(remote_pass=not dto.shutdown, response=dto)

    # ---------------- Heartbeat ----------------
    def heartbeat_payload(self, status: str) -> dict:
        return {
            "device": self.device_id,
            "platform": platform_name(),
            "version": self.config.app_version,
            "status": status,
            "ts_utc": datetime.now(timezone.utc).isoformat(),
        }

    def send_heartbeat(self, status: str) -> bool:
        """Fire-and-forget; returns whether the POST got a 2xx, for logging only."""
        cfg = self.config
        if not cfg.remote_control_url:
            return False
        url = add_query(cfg.remote_control_url, "report", 1)
        try:
            r = self.session.post(url, json=self.heartbeat_payload(status), timeout=self.timeout)
            ok = 200 <= r.status_code < 300
            if not ok:
                log.debug("Heartbeat answered HTTP %s", r.status_code)
            return ok
        except requests.RequestException as e:
            log.debug("Heartbeat failed: %s", e)
            return False
