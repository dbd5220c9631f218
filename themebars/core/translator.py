# themebars/core/translator.py
"""
Locale negotiation and message lookup for theme templates.

A Translator is built once per request from the client's Accept-Language
header and the theme's translation table. It picks the best available locale
and resolves message keys against it, falling back to the primary language
and then to the default locale.
"""
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog

log = structlog.get_logger(__name__)

DEFAULT_LOCALE = "en"

_PLACEHOLDER_RE = re.compile(r"\{\s*([A-Za-z_][\w.-]*)\s*\}")


def parse_accept_language(header_value: Optional[str]) -> List[str]:
    """
    Parses an Accept-Language value into language ranges, best first.
    Ranges with q=0 are dropped; ties keep header order.
    """
    if not header_value:
        return []
    weighted: List[Tuple[float, int, str]] = []
    for position, part in enumerate(header_value.split(",")):
        pieces = [p.strip() for p in part.split(";")]
        tag = pieces[0].lower().replace("_", "-")
        if not tag:
            continue
        quality = 1.0
        for param in pieces[1:]:
            if param.startswith("q="):
                try:
                    quality = float(param[2:])
                except ValueError:
                    quality = 1.0
        if quality <= 0:
            continue
        weighted.append((-quality, position, tag))
    return [tag for _, _, tag in sorted(weighted)]


def flatten_messages(messages: Mapping[str, Any], prefix: str = "") -> Dict[str, str]:
    # nested message dicts become dotted keys: {"a": {"b": "x"}} -> {"a.b": "x"}
    flat: Dict[str, str] = {}
    for key, value in messages.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten_messages(value, prefix=f"{full_key}."))
        elif value is not None:
            flat[full_key] = str(value)
    return flat


def _primary(locale: str) -> str:
    return locale.split("-", 1)[0]


class Translator:
    """Resolves message keys for the locale negotiated from a request."""

    def __init__(self, locale: str, translations: Dict[str, Dict[str, str]], default_locale: str = DEFAULT_LOCALE):
        self._locale = locale
        self._translations = translations
        self._default_locale = default_locale

    @classmethod
    def create(
        cls,
        accept_language: Optional[str],
        translations: Optional[Mapping[str, Mapping[str, Any]]],
        default_locale: str = DEFAULT_LOCALE,
    ) -> "Translator":
        table = {
            str(locale).lower().replace("_", "-"): flatten_messages(messages or {})
            for locale, messages in (translations or {}).items()
        }
        default_locale = default_locale.lower()
        locale = cls._negotiate(parse_accept_language(accept_language), table, default_locale)
        log.debug("translator_created", locale=locale, available=sorted(table), accept_language=accept_language)
        return cls(locale, table, default_locale)

    @staticmethod
    def _negotiate(preferred: List[str], table: Mapping[str, Any], default_locale: str) -> str:
        for tag in preferred:
            if tag == "*":
                break
            if tag in table:
                return tag
            primary = _primary(tag)
            if primary in table:
                return primary
            variants = sorted(loc for loc in table if _primary(loc) == primary)
            if variants:
                return variants[0]
        if default_locale in table or not table:
            return default_locale
        return sorted(table)[0]

    def get_locale(self) -> str:
        return self._locale

    def _lookup_chain(self) -> List[str]:
        chain = [self._locale, _primary(self._locale), self._default_locale]
        seen: List[str] = []
        for locale in chain:
            if locale not in seen:
                seen.append(locale)
        return seen

    def get_translations(self) -> Dict[str, str]:
        # merged table for the active locale; more specific locales win.
        merged: Dict[str, str] = {}
        for locale in reversed(self._lookup_chain()):
            merged.update(self._translations.get(locale, {}))
        return merged

    def translate(self, key: str, params: Optional[Mapping[str, Any]] = None) -> str:
        for locale in self._lookup_chain():
            messages = self._translations.get(locale)
            if messages and key in messages:
                message = messages[key]
                break
        else:
            log.debug("translation_key_missing", key=key, locale=self._locale)
            return ""

        if not params:
            return message

        def _substitute(match: "re.Match[str]") -> str:
            name = match.group(1)
            return str(params[name]) if name in params else match.group(0)

        return _PLACEHOLDER_RE.sub(_substitute, message)
