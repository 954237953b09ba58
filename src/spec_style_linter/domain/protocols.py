from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from spec_style_linter.domain.entities import DescriptionTree, LintReport
    from spec_style_linter.domain.registry_types import RuleRegistryEntry


class TelemetryPort(Protocol):
    """Protocol for telemetry/UI updates."""

    def step(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def debug(self, message: str) -> None: ...
    def handshake(self) -> None: ...


class FileSystemProtocol(Protocol):
    """Protocol for filesystem operations - abstracts Path usage."""

    def is_directory(self, path: str) -> bool:
        """Check if path is a directory."""
        ...

    def is_file(self, path: str) -> bool:
        """Check if path is a regular file."""
        ...

    def collect_files(
        self, path: str, include: tuple[str, ...], exclude: tuple[str, ...]
    ) -> list[str]:
        """Files under path matching include globs and no exclude glob, sorted."""
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """Read a file as text."""
        ...


class SpecParserProtocol(Protocol):
    """Protocol for turning spec source into a description tree."""

    def parse(self, source: str, path: str) -> "DescriptionTree":
        """Parse source; raises ParseError on malformed input."""
        ...


class ReporterProtocol(Protocol):
    """Protocol for rendering a lint report."""

    def render(self, report: "LintReport") -> str: ...


class GuidanceServiceProtocol(Protocol):
    """Protocol for the rule registry (titles, default severities, guidance)."""

    def get_entry(self, rule_id: str) -> Optional["RuleRegistryEntry"]: ...
    def get_default_severity(self, rule_id: str) -> Optional[str]: ...
    def get_title(self, rule_id: str) -> str: ...
    def get_guidance(self, rule_id: str) -> str: ...
    def rule_ids(self) -> list[str]: ...


class ConfigSourceProtocol(Protocol):
    """Protocol for locating and decoding the raw configuration mapping."""

    def load(self, explicit: Optional[str] = None) -> tuple[dict[str, object], Optional[str]]:
        """Return (raw mapping, source path or None)."""
        ...
