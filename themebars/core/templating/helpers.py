# themebars/core/templating/helpers.py
"""
Handlebars helpers available to every theme template.

Each entry in DEFAULT_HELPERS is a registrar: it is called once with the
engine and registers one helper into the engine's helper namespace. Helpers
read the engine's settings, translator and attached context at call time.
pybars passes the current scope ('this') as the first argument.
"""
import json
import re
from html import escape
from typing import Any, Callable, Mapping, Optional, Tuple

from pybars import strlist  # type: ignore

_ABSOLUTE_URL_RE = re.compile(r"^(https?:)?//", re.IGNORECASE)
_SCHEME_RE = re.compile(r"^([A-Za-z][\w+.-]*):(.*)$", re.DOTALL)

ASSETS_PREFIX = "/assets/"
WEBDAV_SCHEME = "webdav"


def _as_text(value: Any) -> str:
    # pybars safe strings are strlist instances
    if isinstance(value, strlist):
        return "".join(value)
    return "" if value is None else str(value)


def cdnify(path: Any, settings: Mapping[str, Any], theme_settings: Mapping[str, Any]) -> str:
    """
    Rewrites a theme asset path into an absolute URL.

    "webdav:" paths point at the store's content directory, "<endpoint>:" paths
    at a CDN endpoint from theme settings, and plain paths at the versioned
    theme assets on the CDN.
    """
    path = _as_text(path)
    if not path:
        return ""

    if _ABSOLUTE_URL_RE.match(path):
        return path

    cdn_url = _as_text(settings.get("cdn_url") or "")

    scheme_match = _SCHEME_RE.match(path)
    if scheme_match:
        scheme, rest = scheme_match.groups()
        if rest.startswith("/"):
            rest = rest[1:]

        if scheme == WEBDAV_SCHEME:
            return "/".join([cdn_url, "content", rest])

        endpoints = theme_settings.get("cdn") or {}
        if isinstance(endpoints, Mapping) and scheme in endpoints:
            if cdn_url:
                return "/".join([_as_text(endpoints[scheme]), rest])
            return "/".join(["/assets/cdn", scheme, rest])

        return rest if rest.startswith("/") else "/" + rest

    if not path.startswith("/"):
        path = "/" + path

    version_id = settings.get("theme_version_id")
    if not version_id:
        return path
    version_id = _as_text(version_id)

    if path.startswith(ASSETS_PREFIX):
        path = path[len(ASSETS_PREFIX):]

    session_id = settings.get("theme_session_id")
    if session_id:
        return "/".join([cdn_url, "stencil", version_id, "e", _as_text(session_id), path])
    return "/".join([cdn_url, "stencil", version_id, path])


def cdn_helper(engine) -> None:
    def cdn(this: Any, path: Any = "", *args: Any, **kwargs: Any) -> str:
        return cdnify(path, engine.settings, engine.theme_settings)

    engine.register_helper("cdn", cdn)


def lang_helper(engine) -> None:
    def lang(this: Any, key: Any, *args: Any, **kwargs: Any) -> str:
        if engine.translator is None:
            return ""
        return engine.translator.translate(_as_text(key), kwargs)

    engine.register_helper("lang", lang)


def location_helper(engine) -> None:
    def location(this: Any, location_id: Any, *args: Any, **kwargs: Any):
        """
        Outputs the content block registered under location_id, unescaped.

        Blocks come from the request context attached by create_instance; an
        engine with no attached context reads "locations" from the render scope.
        """
        context = engine.context if engine.context is not None else this
        if not hasattr(context, "get"):
            return ""
        locations = context.get("locations")
        if not isinstance(locations, Mapping):
            return ""
        content = locations.get(_as_text(location_id))
        if content is None:
            return ""
        return strlist([_as_text(content)])

    engine.register_helper("location", location)


def stylesheet_helper(engine) -> None:
    def stylesheet(this: Any, path: Any, *args: Any, **kwargs: Any):
        url = cdnify(path, engine.settings, engine.theme_settings)
        attributes = [f'href="{escape(url)}"', 'rel="stylesheet"']
        attributes.extend(f'{name}="{escape(_as_text(value))}"' for name, value in sorted(kwargs.items()))
        return strlist([f"<link data-stencil-stylesheet {' '.join(attributes)}>"])

    engine.register_helper("stylesheet", stylesheet)


def json_helper(engine) -> None:
    def to_json(this: Any, value: Any = None, *args: Any, **kwargs: Any):
        return strlist([json.dumps(value, default=_as_text)])

    engine.register_helper("json", to_json)


HelperRegistrar = Callable[[Any], None]

DEFAULT_HELPERS: Tuple[HelperRegistrar, ...] = (
    cdn_helper,
    lang_helper,
    location_helper,
    stylesheet_helper,
    json_helper,
)


def register_helpers(engine, registrars: Optional[Tuple[HelperRegistrar, ...]] = None) -> None:
    for registrar in DEFAULT_HELPERS if registrars is None else registrars:
        registrar(engine)
