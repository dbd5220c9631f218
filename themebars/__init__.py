# themebars/__init__.py
"""
themebars: Handlebars theme rendering for storefronts.

Loads theme templates through an assembler, renders them with site settings,
theme settings and localized strings, and post-processes the output.
"""
__version__ = "0.3.0"

from themebars.core.engine import ThemeEngine, create_instance
from themebars.core.translator import Translator

__all__ = ["ThemeEngine", "Translator", "create_instance", "__version__"]
