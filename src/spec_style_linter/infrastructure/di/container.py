from typing import TYPE_CHECKING, Any, Optional, cast

from spec_style_linter.domain.rules.catalog import RuleCatalog
from spec_style_linter.infrastructure.config_file_loader import ConfigFileLoader
from spec_style_linter.infrastructure.gateways.filesystem_gateway import FileSystemGateway
from spec_style_linter.infrastructure.gateways.spec_parser import SpecParser
from spec_style_linter.infrastructure.reporters import JsonReporter, TextReporter
from spec_style_linter.infrastructure.services.guidance_service import GuidanceService
from spec_style_linter.interface.telemetry import ProjectTelemetry

if TYPE_CHECKING:
    from spec_style_linter.domain.config import LinterConfig
    from spec_style_linter.domain.protocols import (
        ConfigSourceProtocol,
        FileSystemProtocol,
        GuidanceServiceProtocol,
        ReporterProtocol,
        SpecParserProtocol,
        TelemetryPort,
    )


class SpecStyleContainer:
    """Dependency Injection Container for specstyle."""

    def __init__(self, registry_path: Optional[str] = None) -> None:
        self._singletons: dict[str, Any] = {}
        self._register_defaults(registry_path)

    def _register_defaults(self, registry_path: Optional[str]) -> None:
        """Register default implementations for protocols."""
        self.register_singleton("TelemetryPort", ProjectTelemetry("specstyle", "cyan", "checking spec style"))
        self.register_singleton("FileSystemGateway", FileSystemGateway())
        self.register_singleton("ConfigFileLoader", ConfigFileLoader())
        guidance_service = GuidanceService(registry_path)
        self.register_singleton("GuidanceService", guidance_service)
        self.register_singleton("RuleCatalog", RuleCatalog(guidance_service))
        self.register_singleton("TextReporter", TextReporter())
        self.register_singleton("JsonReporter", JsonReporter())

    # JUSTIFICATION: DI Container must handle any type of service
    def register_singleton(self, key: str, instance: Any) -> None:
        """Register a singleton instance."""
        self._singletons[key] = instance

    # JUSTIFICATION: DI Container must return any type of service
    def get(self, key: str) -> Any:
        """Retrieve a dependency by key. Prefer explicit get_* methods for type safety."""
        if key in self._singletons:
            return self._singletons[key]
        raise ValueError(f"Dependency '{key}' not registered.")

    def get_telemetry_port(self) -> "TelemetryPort":
        """Return the telemetry/UI port."""
        return cast("TelemetryPort", self.get("TelemetryPort"))

    def get_filesystem_gateway(self) -> "FileSystemProtocol":
        """Return the filesystem gateway."""
        return cast("FileSystemProtocol", self.get("FileSystemGateway"))

    def get_config_source(self) -> "ConfigSourceProtocol":
        return cast("ConfigSourceProtocol", self.get("ConfigFileLoader"))

    def get_guidance_service(self) -> "GuidanceServiceProtocol":
        """Return the rule registry service."""
        return cast("GuidanceServiceProtocol", self.get("GuidanceService"))

    def get_rule_catalog(self) -> RuleCatalog:
        return cast(RuleCatalog, self.get("RuleCatalog"))

    def get_text_reporter(self) -> "ReporterProtocol":
        return cast("ReporterProtocol", self.get("TextReporter"))

    def get_json_reporter(self) -> "ReporterProtocol":
        return cast("ReporterProtocol", self.get("JsonReporter"))

    @staticmethod
    def create_parser(config: "LinterConfig") -> "SpecParserProtocol":
        """Parsers are built per run because they depend on the run configuration."""
        return SpecParser(config)
