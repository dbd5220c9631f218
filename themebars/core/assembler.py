# themebars/core/assembler.py
"""
Collaborator contracts consumed by the theme engine, plus a filesystem
assembler used by the CLI and by tests.

An assembler resolves a logical template path into every template source the
page needs (the page itself and its partials, transitively) and supplies the
theme's translation table.
"""
import asyncio
import json
import re
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Union

import structlog

from themebars.exceptions import AssemblerError

log = structlog.get_logger(__name__)

TemplateRepresentation = Union[str, Any]

TEMPLATE_EXTENSION = ".html"

# {{> name}}, {{> "name"}} and {{#> name}} partial references
_PARTIAL_RE = re.compile(r"\{\{~?#?>\s*[\"']?([\w./-]+)[\"']?")


class Processor(Protocol):
    """Transforms raw template sources before they reach the template store."""

    def __call__(self, templates: Dict[str, str]) -> Dict[str, TemplateRepresentation]:
        ...


class Decorator(Protocol):
    """Post-processes fully rendered output."""

    def __call__(self, content: str) -> str:
        ...


class Assembler(Protocol):
    """Source of template and translation material for one theme."""

    async def get_templates(
        self, path: str, processor: Optional[Processor] = None
    ) -> Dict[str, TemplateRepresentation]:
        """Returns every template needed to render `path`, run through `processor` if given."""
        ...

    async def get_translations(self) -> Dict[str, Dict[str, Any]]:
        """Returns the full locale -> messages table for the theme."""
        ...


def find_partial_references(source: str) -> list:
    return _PARTIAL_RE.findall(source)


def collect_transitively(path: str, read_source: Callable[[str], str]) -> Dict[str, str]:
    # reads `path` and every partial it references, each exactly once.
    collected: Dict[str, str] = {}
    pending = [path]
    while pending:
        current = pending.pop()
        if current in collected:
            continue
        source = read_source(current)
        collected[current] = source
        pending.extend(ref for ref in find_partial_references(source) if ref not in collected)
    return collected


class FileSystemAssembler:
    """
    Reads a theme laid out on disk:

        <theme_dir>/templates/pages/home.html   -> "pages/home"
        <theme_dir>/lang/en.json                -> translations for "en"
    """

    def __init__(self, theme_dir: Path, templates_dir: str = "templates", lang_dir: str = "lang"):
        self.theme_dir = Path(theme_dir)
        self.templates_root = self.theme_dir / templates_dir
        self.lang_root = self.theme_dir / lang_dir

    def _template_file(self, path: str) -> Path:
        return self.templates_root / f"{path}{TEMPLATE_EXTENSION}"

    def read_template(self, path: str) -> str:
        template_file = self._template_file(path)
        try:
            return template_file.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise AssemblerError(f"template '{path}' not found at {template_file}") from e
        except OSError as e:
            raise AssemblerError(f"failed to read template '{path}': {e}") from e

    def collect_templates(self, path: str) -> Dict[str, str]:
        collected = collect_transitively(path, self.read_template)
        log.debug("templates_collected", root=path, count=len(collected))
        return collected

    def list_templates(self) -> list:
        if not self.templates_root.is_dir():
            return []
        return sorted(
            p.relative_to(self.templates_root).with_suffix("").as_posix()
            for p in self.templates_root.rglob(f"*{TEMPLATE_EXTENSION}")
        )

    def read_translations(self) -> Dict[str, Dict[str, Any]]:
        translations: Dict[str, Dict[str, Any]] = {}
        if not self.lang_root.is_dir():
            log.debug("no_translation_directory", path=str(self.lang_root))
            return translations
        for lang_file in sorted(self.lang_root.glob("*.json")):
            try:
                translations[lang_file.stem] = json.loads(lang_file.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise AssemblerError(f"failed to load translations from {lang_file}: {e}") from e
        return translations

    async def get_templates(
        self, path: str, processor: Optional[Processor] = None
    ) -> Dict[str, TemplateRepresentation]:
        templates = await asyncio.to_thread(self.collect_templates, path)
        if processor is not None:
            return processor(templates)
        return dict(templates)

    async def get_translations(self) -> Dict[str, Dict[str, Any]]:
        return await asyncio.to_thread(self.read_translations)


class DictAssembler:
    """In-memory assembler over pre-supplied sources; useful for tooling and tests."""

    def __init__(self, templates: Mapping[str, str], translations: Optional[Mapping[str, Any]] = None):
        self.templates = dict(templates)
        self.translations = dict(translations or {})

    def read_template(self, path: str) -> str:
        if path not in self.templates:
            raise AssemblerError(f"template '{path}' not found")
        return self.templates[path]

    def collect_templates(self, path: str) -> Dict[str, str]:
        return collect_transitively(path, self.read_template)

    async def get_templates(
        self, path: str, processor: Optional[Processor] = None
    ) -> Dict[str, TemplateRepresentation]:
        templates = self.collect_templates(path)
        return processor(templates) if processor is not None else templates

    async def get_translations(self) -> Dict[str, Dict[str, Any]]:
        return dict(self.translations)
