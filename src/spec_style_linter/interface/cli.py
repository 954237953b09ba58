"""CLI entry points for specstyle - Thin Controller using Typer."""

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import typer
from rich.console import Console
from rich.table import Table

from spec_style_linter.domain.config import ConfigOverrides, ConfigurationLoader, LinterConfig
from spec_style_linter.domain.constants import DEFAULT_SPEC_DIR, EXIT_CONFIG_ERROR, EXIT_OK, EXIT_VIOLATIONS
from spec_style_linter.domain.exceptions import ConfigurationError
from spec_style_linter.domain.protocols import (
    ConfigSourceProtocol,
    FileSystemProtocol,
    GuidanceServiceProtocol,
    ReporterProtocol,
    SpecParserProtocol,
    TelemetryPort,
)
from spec_style_linter.domain.rules import BaseRule
from spec_style_linter.domain.rules.catalog import RuleCatalog
from spec_style_linter.infrastructure.reporters import OutlineRenderer, exit_status
from spec_style_linter.interface.telemetry import configure_logging
from spec_style_linter.use_cases.check_specs import CheckSpecsUseCase
from spec_style_linter.use_cases.rule_engine import RuleEngine

# B008: avoid function calls in defaults; module-level Typer parameters
_PATHS = typer.Argument(None, help="Spec files or directories (default: spec/ if present, else .)")
_CONFIG = typer.Option(None, "--config", "-c", help="TOML file with specstyle settings")
_ENABLE = typer.Option(None, "--enable", help="Enable a rule (repeatable)")
_DISABLE = typer.Option(None, "--disable", help="Disable a rule (repeatable)")
_SEVERITY = typer.Option(None, "--severity", help="Override a severity: RULE=error|warning|info (repeatable)")
_INCLUDE = typer.Option(None, "--include", help="Include glob; replaces the configured ones (repeatable)")
_EXCLUDE = typer.Option(None, "--exclude", help="Exclude glob (repeatable)")
_VERBOSE = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr")


class OutputFormat(str, Enum):
    text = "text"
    json = "json"


_FORMAT = typer.Option(OutputFormat.text, "--format", "-f", help="Output format")


@dataclass(frozen=True)
class CLIDependencies:
    """Explicit dependencies for the CLI. All dependencies injected at composition root."""

    telemetry: TelemetryPort
    filesystem: FileSystemProtocol
    config_source: ConfigSourceProtocol
    guidance_service: GuidanceServiceProtocol
    catalog: RuleCatalog
    parser_factory: Callable[[LinterConfig], SpecParserProtocol]
    text_reporter: ReporterProtocol
    json_reporter: ReporterProtocol


class CLIAppFactory:
    """Creates the Typer app."""

    @staticmethod
    def resolve_target_paths(paths: Optional[list[Path]], filesystem: FileSystemProtocol) -> list[str]:
        """Explicit paths, else spec/ if it exists, else '.'."""
        if paths:
            return [str(p) for p in paths]
        if filesystem.is_directory(DEFAULT_SPEC_DIR):
            return [DEFAULT_SPEC_DIR]
        return ["."]

    @staticmethod
    def load_config(
        deps: CLIDependencies, config_path: Optional[Path], overrides: Optional[ConfigOverrides] = None
    ) -> LinterConfig:
        """Read and validate configuration; exits with status 2 on any configuration error."""
        try:
            raw, source = deps.config_source.load(str(config_path) if config_path else None)
            if source:
                deps.telemetry.debug(f"Configuration: {source}")
            return ConfigurationLoader(deps.catalog.rule_ids()).build(raw, overrides)
        except ConfigurationError as exc:
            deps.telemetry.error(str(exc))
            raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc

    @staticmethod
    def build_rules(deps: CLIDependencies, linter_config: LinterConfig) -> tuple[BaseRule, ...]:
        """Active rules for the run; a broken rule registry exits with status 2."""
        try:
            return deps.catalog.build(linter_config)
        except ConfigurationError as exc:
            deps.telemetry.error(str(exc))
            raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc

    @staticmethod
    def create_app(deps: CLIDependencies) -> typer.Typer:
        """Create the Typer app with explicitly injected dependencies."""
        app = typer.Typer(
            name="specstyle",
            help="specstyle: style checks for RSpec-style describe/context/it suites",
            add_completion=False,
        )

        @app.command()
        def check(
            paths: Optional[list[Path]] = _PATHS,
            config: Optional[Path] = _CONFIG,
            enable: Optional[list[str]] = _ENABLE,
            disable: Optional[list[str]] = _DISABLE,
            severity: Optional[list[str]] = _SEVERITY,
            include: Optional[list[str]] = _INCLUDE,
            exclude: Optional[list[str]] = _EXCLUDE,
            output_format: OutputFormat = _FORMAT,
            verbose: bool = _VERBOSE,
        ) -> None:
            """Lint spec files and report style violations."""
            configure_logging(verbose)
            deps.telemetry.handshake()
            overrides = ConfigOverrides(
                enable=tuple(enable or ()),
                disable=tuple(disable or ()),
                severity=tuple(severity or ()),
                include=tuple(include or ()),
                exclude=tuple(exclude or ()),
            )
            linter_config = CLIAppFactory.load_config(deps, config, overrides)
            rules = CLIAppFactory.build_rules(deps, linter_config)
            deps.telemetry.debug("Active rules: " + ", ".join(f"{r.rule_id}={r.severity.value}" for r in rules))
            use_case = CheckSpecsUseCase(
                config=linter_config,
                filesystem=deps.filesystem,
                parser=deps.parser_factory(linter_config),
                engine=RuleEngine(rules, deps.telemetry),
                telemetry=deps.telemetry,
            )
            report = use_case.execute(CLIAppFactory.resolve_target_paths(paths, deps.filesystem))
            reporter = deps.json_reporter if output_format is OutputFormat.json else deps.text_reporter
            typer.echo(reporter.render(report))
            raise typer.Exit(code=exit_status(report))

        @app.command()
        def tree(
            paths: Optional[list[Path]] = _PATHS,
            config: Optional[Path] = _CONFIG,
            include: Optional[list[str]] = _INCLUDE,
            exclude: Optional[list[str]] = _EXCLUDE,
            output_format: OutputFormat = _FORMAT,
            verbose: bool = _VERBOSE,
        ) -> None:
            """Print the describe/context/it outline of spec files without checking rules."""
            configure_logging(verbose)
            overrides = ConfigOverrides(include=tuple(include or ()), exclude=tuple(exclude or ()))
            linter_config = CLIAppFactory.load_config(deps, config, overrides)
            use_case = CheckSpecsUseCase(
                config=linter_config,
                filesystem=deps.filesystem,
                parser=deps.parser_factory(linter_config),
                engine=RuleEngine(()),
                telemetry=deps.telemetry,
            )
            trees, failures = use_case.outline(CLIAppFactory.resolve_target_paths(paths, deps.filesystem))
            if output_format is OutputFormat.json:
                payload = {
                    "trees": [t.to_dict() for t in trees],
                    "unparseable": [f.to_dict() for f in failures],
                }
                typer.echo(json.dumps(payload, indent=2))
            else:
                typer.echo(OutlineRenderer().render(trees, tuple(failures)))
            raise typer.Exit(code=EXIT_VIOLATIONS if failures else EXIT_OK)

        @app.command(name="rules")
        def list_rules(config: Optional[Path] = _CONFIG) -> None:
            """List every rule with its target, severity and whether it is enabled."""
            linter_config = CLIAppFactory.load_config(deps, config)
            active = {rule.rule_id: rule for rule in CLIAppFactory.build_rules(deps, linter_config)}
            table = Table(title="specstyle rules")
            table.add_column("Rule", no_wrap=True, style="cyan")
            table.add_column("Target", no_wrap=True)
            table.add_column("Severity", no_wrap=True)
            table.add_column("Enabled", no_wrap=True)
            table.add_column("Title")
            for rule_type in deps.catalog.RULE_TYPES:
                rule = active.get(rule_type.rule_id)
                try:
                    level = rule.severity if rule else deps.catalog.default_severity(rule_type)
                except ConfigurationError as exc:
                    deps.telemetry.error(str(exc))
                    raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc
                targets = ", ".join(sorted(kind.value for kind in rule_type.target_kinds))
                title = deps.guidance_service.get_title(rule_type.rule_id)
                if rule_type.heuristic:
                    title += " (heuristic)"
                table.add_row(rule_type.rule_id, targets, level.value, "yes" if rule else "no", title)
            Console(highlight=False).print(table)

        @app.command()
        def explain(rule_id: str = typer.Argument(..., help="Rule id, e.g. no-should")) -> None:
            """Show the guidance for one rule."""
            if deps.catalog.get(rule_id) is None:
                known = ", ".join(deps.catalog.rule_ids())
                deps.telemetry.error(f"Unknown rule id '{rule_id}' (known: {known})")
                raise typer.Exit(code=EXIT_CONFIG_ERROR)
            typer.echo(f"{rule_id}: {deps.guidance_service.get_title(rule_id)}\n")
            typer.echo(deps.guidance_service.get_guidance(rule_id))

        return app


create_app = CLIAppFactory.create_app
