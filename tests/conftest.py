"""Shared fixtures for themebars tests."""

import json
from pathlib import Path

import pytest

from themebars.core.assembler import DictAssembler
from themebars.core.templating.store import TemplateCompiler


class CountingCompiler(TemplateCompiler):
    """TemplateCompiler that records which sources were precompiled."""

    def __init__(self):
        super().__init__()
        self.precompiled = []

    def precompile(self, source):
        self.precompiled.append(source)
        return super().precompile(source)


THEME_TEMPLATES = {
    "pages/home": '<h1>{{lang "home.title"}}</h1>{{> header}}<p>{{message}}</p>',
    "pages/product": "<h2>{{product.name}}</h2>{{> header}}",
    "header": "<header>{{store_name}}</header>",
}

THEME_TRANSLATIONS = {
    "en": {"home": {"title": "Welcome"}, "greeting": "Hello {name}"},
    "fr": {"home": {"title": "Bienvenue"}, "greeting": "Bonjour {name}"},
}


@pytest.fixture
def theme_assembler():
    return DictAssembler(THEME_TEMPLATES, THEME_TRANSLATIONS)


@pytest.fixture
def counting_compiler():
    return CountingCompiler()


@pytest.fixture
def theme_dir(tmp_path: Path) -> Path:
    """Creates a small theme on disk: templates/, lang/ and config.json."""
    root = tmp_path / "theme"
    for logical_path, source in THEME_TEMPLATES.items():
        template_file = root / "templates" / f"{logical_path}.html"
        template_file.parent.mkdir(parents=True, exist_ok=True)
        template_file.write_text(source, encoding="utf-8")
    (root / "lang").mkdir()
    for locale, messages in THEME_TRANSLATIONS.items():
        (root / "lang" / f"{locale}.json").write_text(json.dumps(messages), encoding="utf-8")
    (root / "config.json").write_text(
        json.dumps({"name": "Test Theme", "settings": {"cdn": {"img": "https://img.cdn.com"}}}),
        encoding="utf-8",
    )
    return root


@pytest.fixture
def theme_templates():
    return dict(THEME_TEMPLATES)
