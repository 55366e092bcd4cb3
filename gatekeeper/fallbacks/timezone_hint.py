from __future__ import annotations

import os
import time
from pathlib import Path


def local_timezone_name() -> str:
    """Best-effort IANA name ("Africa/Cairo"), else the tzname abbreviation."""
    tz = os.environ.get("TZ", "").lstrip(":")
    if tz:
        return tz
    try:
        target = str(Path("/etc/localtime").resolve())
        if "zoneinfo/" in target:
            return target.split("zoneinfo/", 1)[1]
    except OSError:
        pass
    return time.tzname[0] if time.tzname else ""


class TimezoneHintFallback:
    """
    Narrow allow hint: passes when the local timezone name contains the
    configured city (e.g. "cairo"). Never used to deny.
    """
    name = "timezone_hint"

    def allows(self, config) -> bool:
        hint = (getattr(config, "timezone_hint", "") or "").strip().lower()
        if not hint:
            return False
        return hint in local_timezone_name().lower()


FALLBACKS = [TimezoneHintFallback]
