# themebars/core/engine.py
"""
ThemeEngine ties settings, the active translator and the template store
together: it loads theme templates through an assembler, renders them with
the registered helpers and runs the rendered output through its decorators.
"""
import asyncio
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional, Sequence, Union

import pybars  # type: ignore
import structlog

from themebars.core.assembler import Assembler, Decorator, Processor
from themebars.core.templating.helpers import DEFAULT_HELPERS, HelperRegistrar, register_helpers
from themebars.core.templating.store import (
    CompiledTemplate,
    TemplateCompiler,
    TemplateRepresentation,
    TemplateStore,
)
from themebars.core.translator import Translator
from themebars.exceptions import TemplateError

log = structlog.get_logger(__name__)

RenderResult = Union[str, Dict[str, Any]]


class ThemeEngine:
    # orchestrates template loading, rendering and output decoration for one theme.
    def __init__(
        self,
        settings: Optional[Mapping[str, Any]],
        theme_settings: Optional[Mapping[str, Any]],
        assembler: Optional[Assembler] = None,
        helpers: Sequence[HelperRegistrar] = DEFAULT_HELPERS,
        compiler: Optional[TemplateCompiler] = None,
    ):
        self.settings: Mapping[str, Any] = MappingProxyType(dict(settings or {}))
        self.theme_settings: Mapping[str, Any] = MappingProxyType(dict(theme_settings or {}))
        self.assembler = assembler
        self.compiler = compiler or TemplateCompiler()
        self.store = TemplateStore()
        self.translator: Optional[Translator] = None
        self.context: Optional[MutableMapping[str, Any]] = None
        self.log = structlog.get_logger(f"{__name__}.{self.__class__.__name__}")

        self._helpers: Dict[str, Callable[..., Any]] = {}
        self._partials: Dict[str, CompiledTemplate] = {}
        self._decorators: List[Decorator] = []

        register_helpers(self, tuple(helpers))
        self.log.debug("engine_initialized", helpers=sorted(self._helpers))

    @property
    def helpers(self) -> Mapping[str, Callable[..., Any]]:
        return MappingProxyType(self._helpers)

    @property
    def decorators(self) -> tuple:
        return tuple(self._decorators)

    def register_helper(self, name: str, helper: Callable[..., Any]) -> None:
        self._helpers[name] = helper

    def reload_settings(self, settings: Mapping[str, Any], theme_settings: Mapping[str, Any]) -> None:
        # swaps both mappings at once; never call while a render is in progress.
        self.settings = MappingProxyType(dict(settings or {}))
        self.theme_settings = MappingProxyType(dict(theme_settings or {}))

    # --- loading ---

    def _require_assembler(self) -> Assembler:
        if self.assembler is None:
            raise TemplateError("no assembler configured for this engine")
        return self.assembler

    async def load_translations(self, accept_language: Optional[str]) -> "ThemeEngine":
        translations = await self._require_assembler().get_translations()
        self.translator = Translator.create(accept_language, translations)
        self.log.info("translations_loaded", locale=self.translator.get_locale())
        return self

    def get_template_processor(self) -> Processor:
        """Precompiles raw sources; templates already in the store are left out."""
        def process(templates: Dict[str, str]) -> Dict[str, TemplateRepresentation]:
            return {
                path: self.compiler.precompile(source)
                for path, source in templates.items()
                if path not in self.store
            }
        return process

    def _insert_templates(self, templates: Mapping[str, TemplateRepresentation]) -> int:
        added = 0
        try:
            for path, representation in templates.items():
                if path in self.store:
                    continue
                self.store.add(path, self.compiler.materialize(representation))
                added += 1
        finally:
            # partials must cover everything stored, even after a failed batch
            self._partials = self.store.as_partials()
        return added

    async def load_templates(self, path: str) -> "ThemeEngine":
        templates = await self._require_assembler().get_templates(path, self.get_template_processor())
        added = self._insert_templates(templates)
        self.log.debug("templates_loaded", path=path, added=added, total=len(self.store))
        return self

    def load_templates_sync(self, templates: Mapping[str, str]) -> "ThemeEngine":
        added = self._insert_templates(dict(templates))
        self.log.debug("templates_loaded_sync", added=added, total=len(self.store))
        return self

    async def load_theme(self, paths: Union[str, Sequence[str]], accept_language: Optional[str]) -> "ThemeEngine":
        if isinstance(paths, str):
            paths = [paths]
        await asyncio.gather(
            self.load_translations(accept_language),
            *(self.load_templates(path) for path in paths),
        )
        return self

    # --- rendering ---

    def _invoke(self, template: CompiledTemplate, context: Any, source_name: str) -> str:
        try:
            return str(template(context, helpers=self._helpers, partials=self._partials))
        except pybars.PybarsError as e:
            raise TemplateError(f"template render failed for '{source_name}': {e}") from e

    def render(self, path: str, context: MutableMapping[str, Any]) -> str:
        template = self.store[path]

        context["template"] = path
        if self.translator is not None:
            context["locale_name"] = self.translator.get_locale()

        output = self._invoke(template, context, path)
        for decorator in self._decorators:
            output = decorator(output)
        return output

    def render_string(self, source: str, context: Any) -> str:
        template = self.compiler.compile(source)
        return self._invoke(template, context, "<string>")

    def render_theme(
        self,
        template_path: Union[str, Sequence[str], None],
        data: Mapping[str, Any],
    ) -> RenderResult:
        context = data.get("context")
        if context is None:
            context = {}
        remote = bool(data.get("remote"))
        remote_data = data.get("remote_data")

        if remote and remote_data:
            context.update(remote_data)

        if not template_path:
            return {"data": remote_data}

        if isinstance(template_path, str):
            html: RenderResult = self.render(template_path, context)
        else:
            html = {path: self.render(path, context) for path in template_path}

        if remote:
            return {"data": remote_data, "content": html}
        return html

    def add_decorator(self, decorator: Decorator) -> None:
        self._decorators.append(decorator)


async def create_instance(
    data: Mapping[str, Any],
    assembler: Assembler,
    helpers: Sequence[HelperRegistrar] = DEFAULT_HELPERS,
) -> ThemeEngine:
    """
    Builds a ThemeEngine for one request: fetches the theme's translations,
    negotiates the locale and attaches the request context.
    """
    context = data.get("context") or {}
    translations = await assembler.get_translations()

    translator = Translator.create(data.get("accept_language"), translations)
    engine = ThemeEngine(
        context.get("settings"),
        context.get("theme_settings"),
        assembler,
        helpers=helpers,
    )
    engine.context = context
    engine.translator = translator
    log.debug("engine_instance_created", locale=translator.get_locale())
    return engine
