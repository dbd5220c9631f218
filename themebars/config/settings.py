from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
import structlog

log = structlog.get_logger(__name__)

DEFAULT_ACCEPT_LANGUAGE = "en"
DEFAULT_TEMPLATES_DIR = "templates"
DEFAULT_LANG_DIR = "lang"

class OutputFormat(Enum):
    # how rendered pages are written out.
    HTML = "html"
    JSON = "json"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["OutputFormat"]:
        if not s:
            return None
        try:
            return cls(s.lower())
        except ValueError:
            log.warning("invalid_output_format_string", input_string=s)
            return None

@dataclass
class ThemeConfig:
    # holds all configuration parameters for a single render run.
    theme_dir: Path = field(default_factory=Path.cwd)
    template_paths: List[str] = field(default_factory=list)
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE
    settings: Dict[str, Any] = field(default_factory=dict)
    theme_settings: Dict[str, Any] = field(default_factory=dict)
    context: Dict[str, Any] = field(default_factory=dict)
    remote: bool = False
    remote_data: Dict[str, Any] = field(default_factory=dict)
    output_format: Optional[OutputFormat] = None
    output_file: Optional[Path] = None
    templates_dir: str = DEFAULT_TEMPLATES_DIR
    lang_dir: str = DEFAULT_LANG_DIR

    def __post_init__(self):
        # performs type normalisation after dataclass instantiation.
        self.theme_dir = Path(self.theme_dir).resolve()
        if isinstance(self.output_file, str):
            self.output_file = Path(self.output_file)
        if isinstance(self.output_format, str):
            self.output_format = OutputFormat.from_string(self.output_format)

    @property
    def effective_output_format(self) -> OutputFormat:
        if self.output_format:
            return self.output_format
        if self.remote or len(self.template_paths) != 1:
            return OutputFormat.JSON
        return OutputFormat.HTML

    def render_data(self) -> Dict[str, Any]:
        # the request payload handed to ThemeEngine.render_theme / create_instance.
        context = dict(self.context)
        context.setdefault("settings", self.settings)
        context.setdefault("theme_settings", self.theme_settings)
        return {
            "accept_language": self.accept_language,
            "context": context,
            "remote": self.remote,
            "remote_data": dict(self.remote_data),
        }
