from __future__ import annotations

import locale
import os
from typing import Optional

_LOCALE_ENV = ("LC_ALL", "LC_CTYPE", "LANG")


def _country_from_tag(tag: Optional[str]) -> Optional[str]:
    # "ar_EG.UTF-8" / "en-US" -> "EG" / "US"
    if not tag:
        return None
    tag = tag.split(".")[0].split("@")[0].replace("-", "_")
    parts = tag.split("_")
    if len(parts) >= 2 and len(parts[-1]) == 2 and parts[-1].isalpha():
        return parts[-1].upper()
    return None


def device_country() -> Optional[str]:
    try:
        code = _country_from_tag(locale.getlocale()[0])
    except ValueError:
        code = None
    if code:
        return code
    for var in _LOCALE_ENV:
        code = _country_from_tag(os.environ.get(var))
        if code:
            return code
    return None


class LocaleCountryFallback:
    """Device locale region as a weak geo signal."""
    name = "locale_country"

    def allows(self, config) -> bool:
        return config.is_country_allowed(device_country())


FALLBACKS = [LocaleCountryFallback]
