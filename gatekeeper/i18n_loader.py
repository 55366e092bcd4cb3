"""
UI strings for the block screen and host window.

Message keys are the English source strings, so English never needs a
lookup: a missing bundle or a missing entry shows the English text. `en.json`
is kept as the list of keys every other bundle is expected to translate.
"""
from __future__ import annotations

import json
import locale
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

log = logging.getLogger(__name__)

BUNDLE_DIR = Path(__file__).resolve().with_name("i18n")
SOURCE_LOCALE = "en"
AUTO = "auto"


def normalize_locale(tag: Optional[str]) -> str:
    """'ko_KR.UTF-8', 'ko-KR' and ' KO ' all give 'ko'; blank, C and POSIX give ''."""
    if not tag:
        return ""
    tag = tag.strip().split(".")[0].split("@")[0].replace("-", "_")
    lang = tag.split("_")[0].lower()
    if lang in ("c", "posix") or not lang.isalpha():
        return ""
    return lang


def system_locale() -> str:
    try:
        return normalize_locale(locale.getlocale()[0])
    except ValueError:
        return ""


def available_locales() -> List[str]:
    found = {p.stem.lower() for p in BUNDLE_DIR.glob("*.json")}
    found.add(SOURCE_LOCALE)
    return sorted(found)


def load_bundle(lang: str) -> Dict[str, str]:
    path = BUNDLE_DIR / f"{lang}.json"
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("Broken message bundle %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        log.warning("Message bundle %s is not an object", path)
        return {}
    table = {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str) and v}
    if len(table) != len(data):
        log.debug("Skipped %d unusable entries in %s", len(data) - len(table), path)
    return table


class Catalog:
    def __init__(self, lang: str = SOURCE_LOCALE, table: Optional[Dict[str, str]] = None):
        self.lang = lang
        self.table = dict(table or {})

    def gettext(self, text: str) -> str:
        return self.table.get(text, text)

    def untranslated(self) -> List[str]:
        if self.lang == SOURCE_LOCALE:
            return []
        return sorted(k for k in load_bundle(SOURCE_LOCALE) if k not in self.table)


_lock = threading.Lock()
_current = Catalog()


def set_locale(tag: Optional[str]) -> str:
    """
    Switch the UI language and return the one in effect. Takes a bare
    language or a full locale tag; "auto" follows the OS. Anything without a
    usable bundle falls back to English.
    """
    global _current
    requested = (tag or "").strip()
    lang = system_locale() if requested.lower() == AUTO else normalize_locale(requested)
    table: Dict[str, str] = {}
    if lang and lang != SOURCE_LOCALE:
        table = load_bundle(lang)
        if not table:
            log.warning("No messages for locale %r; using English", tag)
    catalog = Catalog(lang if table else SOURCE_LOCALE, table)
    missing = catalog.untranslated()
    if missing:
        log.debug("Locale %s lacks %d strings: %s", catalog.lang, len(missing), missing)
    with _lock:
        _current = catalog
    return catalog.lang


def apply_config_locale(config) -> str:
    lang = set_locale(config.locale)
    log.info("UI locale: %s (configured %r)", lang, config.locale)
    return lang


def get_locale() -> str:
    return _current.lang


def _(text: str) -> str:
    return _current.gettext(text)
