# themebars/core/templating/__init__.py
"""
Templating module for themebars.

Provides the pybars-backed template compiler and store, and the built-in
Handlebars helpers registered on every ThemeEngine.
"""
from .store import CompiledTemplateArtifact, TemplateCompiler, TemplateStore
from .helpers import DEFAULT_HELPERS, cdnify

__all__ = [
    "CompiledTemplateArtifact",
    "TemplateCompiler",
    "TemplateStore",
    "DEFAULT_HELPERS",
    "cdnify",
]
