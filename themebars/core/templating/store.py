# themebars/core/templating/store.py
"""
Compiles Handlebars sources with pybars and keeps the compiled templates
addressable by logical path.

Precompiled templates travel as CompiledTemplateArtifact records: plain data
(source plus checksum) that can be cached as JSON and handed back through an
assembler. Materializing an artifact verifies it and compiles it through the
shared compiler cache; no code strings are ever evaluated.
"""
import hashlib
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Iterator, List, Mapping, Union

import pybars  # type: ignore
import structlog

from themebars.exceptions import TemplateCompileError, TemplateNotFoundError

log = structlog.get_logger(__name__)

ARTIFACT_ENGINE = "pybars"
ARTIFACT_FORMAT = 1

CompiledTemplate = Callable[..., Any]


def source_checksum(source: str) -> str:
    return hashlib.sha256(source.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CompiledTemplateArtifact:
    """Portable, re-loadable form of a precompiled template."""
    source: str
    checksum: str
    engine: str = ARTIFACT_ENGINE
    format: int = ARTIFACT_FORMAT

    @classmethod
    def from_source(cls, source: str) -> "CompiledTemplateArtifact":
        return cls(source=source, checksum=source_checksum(source))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CompiledTemplateArtifact":
        try:
            artifact = cls(
                source=data["source"],
                checksum=data["checksum"],
                engine=data.get("engine", ARTIFACT_ENGINE),
                format=int(data.get("format", ARTIFACT_FORMAT)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TemplateCompileError(f"malformed template artifact: {e}") from e
        artifact.verify()
        return artifact

    def verify(self) -> None:
        if self.engine != ARTIFACT_ENGINE:
            raise TemplateCompileError(f"artifact built for engine '{self.engine}', expected '{ARTIFACT_ENGINE}'")
        if self.format != ARTIFACT_FORMAT:
            raise TemplateCompileError(f"unsupported artifact format {self.format}")
        if source_checksum(self.source) != self.checksum:
            raise TemplateCompileError("artifact checksum does not match its source")


TemplateRepresentation = Union[str, CompiledTemplateArtifact, Mapping[str, Any]]


class TemplateCompiler:
    """pybars compiler with a checksum-keyed cache of compiled templates."""

    def __init__(self):
        self._compiler = pybars.Compiler()
        self._cache: Dict[str, CompiledTemplate] = {}

    def compile(self, source: str) -> CompiledTemplate:
        checksum = source_checksum(source)
        return self._compile_with_checksum(source, checksum)

    def _compile_with_checksum(self, source: str, checksum: str) -> CompiledTemplate:
        cached = self._cache.get(checksum)
        if cached is not None:
            return cached
        try:
            compiled = self._compiler.compile(source)
        except Exception as e:
            raise TemplateCompileError(f"failed to compile template: {e}") from e
        self._cache[checksum] = compiled
        return compiled

    def precompile(self, source: str) -> CompiledTemplateArtifact:
        artifact = CompiledTemplateArtifact.from_source(source)
        self._compile_with_checksum(artifact.source, artifact.checksum)
        return artifact

    def materialize(self, representation: TemplateRepresentation) -> CompiledTemplate:
        if isinstance(representation, str):
            return self.compile(representation)
        if isinstance(representation, CompiledTemplateArtifact):
            representation.verify()
            return self._compile_with_checksum(representation.source, representation.checksum)
        if isinstance(representation, Mapping):
            artifact = CompiledTemplateArtifact.from_dict(representation)
            return self._compile_with_checksum(artifact.source, artifact.checksum)
        raise TemplateCompileError(f"cannot load template from {type(representation).__name__}")


class TemplateStore:
    """Logical path -> compiled template. Entries are only ever added; first load wins."""

    def __init__(self):
        self._templates: Dict[str, CompiledTemplate] = {}

    def __contains__(self, path: object) -> bool:
        return path in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[str]:
        return iter(self._templates)

    def __getitem__(self, path: str) -> CompiledTemplate:
        try:
            return self._templates[path]
        except KeyError:
            raise TemplateNotFoundError(path) from None

    def add(self, path: str, template: CompiledTemplate) -> bool:
        if path in self._templates:
            return False
        self._templates[path] = template
        return True

    def paths(self) -> List[str]:
        return sorted(self._templates)

    def as_partials(self) -> Dict[str, CompiledTemplate]:
        # snapshot handed to pybars so every template is usable as a partial.
        return dict(self._templates)
