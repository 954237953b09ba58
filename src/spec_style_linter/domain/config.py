"""Configuration values for a linter run."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from spec_style_linter.domain.constants import (
    DEFAULT_CONTEXT_PREFIXES,
    DEFAULT_INCLUDE,
    DEFAULT_MAX_EXAMPLE_LENGTH,
)
from spec_style_linter.domain.entities import NodeKind, Severity
from spec_style_linter.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinterConfig:
    """
    Immutable configuration for one run.

    Passed explicitly into the parser, the rule catalog and the engine; there is
    no process-wide configuration state.
    """

    include: tuple[str, ...] = DEFAULT_INCLUDE
    exclude: tuple[str, ...] = ()
    rule_toggles: Mapping[str, bool] = field(default_factory=dict)
    severity_overrides: Mapping[str, Severity] = field(default_factory=dict)
    context_prefixes: tuple[str, ...] = DEFAULT_CONTEXT_PREFIXES
    max_example_length: int = DEFAULT_MAX_EXAMPLE_LENGTH
    extra_keywords: Mapping[str, NodeKind] = field(default_factory=dict)

    def is_enabled(self, rule_id: str, default: bool = True) -> bool:
        return self.rule_toggles.get(rule_id, default)

    def severity_for(self, rule_id: str, default: Severity) -> Severity:
        return self.severity_overrides.get(rule_id, default)


@dataclass(frozen=True)
class ConfigOverrides:
    """Command-line overrides applied on top of the file configuration."""

    enable: tuple[str, ...] = ()
    disable: tuple[str, ...] = ()
    severity: tuple[str, ...] = ()
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()


class ConfigurationLoader:
    """
    Validate a raw [tool.specstyle] mapping and build a LinterConfig.

    Every rule id referenced by the configuration must be known; anything else
    is a ConfigurationError raised before a single file is processed.
    """

    _KNOWN_KEYS = frozenset(
        {"include", "exclude", "rules", "severity", "context-prefixes", "max-example-length", "keywords"}
    )
    _ENABLED_WORDS = {"enabled": True, "enable": True, "on": True, "disabled": False, "disable": False, "off": False}

    def __init__(self, known_rule_ids: Iterable[str]) -> None:
        self._known_rule_ids = frozenset(known_rule_ids)

    def build(
        self,
        raw: Optional[Mapping[str, object]] = None,
        overrides: Optional[ConfigOverrides] = None,
    ) -> LinterConfig:
        """Build the run configuration from file values and CLI overrides."""
        data = {str(k).replace("_", "-"): v for k, v in (raw or {}).items()}
        for key in sorted(set(data) - self._KNOWN_KEYS):
            logger.warning("Ignoring unknown configuration key '%s'", key)

        include = self._string_list(data, "include") or DEFAULT_INCLUDE
        exclude = self._string_list(data, "exclude")
        toggles = self._rule_toggles(data.get("rules", {}))
        severities = self._severity_overrides(data.get("severity", {}))
        prefixes = self._string_list(data, "context-prefixes") or DEFAULT_CONTEXT_PREFIXES
        max_length = self._max_length(data.get("max-example-length", DEFAULT_MAX_EXAMPLE_LENGTH))
        keywords = self._keywords(data.get("keywords", {}))

        if overrides is not None:
            for rule_id in overrides.enable:
                toggles[self._check_rule_id(rule_id, "--enable")] = True
            for rule_id in overrides.disable:
                toggles[self._check_rule_id(rule_id, "--disable")] = False
            for item in overrides.severity:
                rule_id, sep, level = item.partition("=")
                if not sep:
                    raise ConfigurationError(f"--severity expects RULE=LEVEL, got '{item}'")
                severities[self._check_rule_id(rule_id.strip(), "--severity")] = self._severity(level, rule_id)
            if overrides.include:
                include = tuple(overrides.include)
            if overrides.exclude:
                exclude = exclude + tuple(overrides.exclude)

        return LinterConfig(
            include=include,
            exclude=exclude,
            rule_toggles=toggles,
            severity_overrides=severities,
            context_prefixes=tuple(p.lower() for p in prefixes),
            max_example_length=max_length,
            extra_keywords=keywords,
        )

    def _check_rule_id(self, rule_id: str, where: str) -> str:
        if rule_id not in self._known_rule_ids:
            known = ", ".join(sorted(self._known_rule_ids))
            raise ConfigurationError(f"Unknown rule id '{rule_id}' in {where} (known: {known})")
        return rule_id

    @staticmethod
    def _string_list(data: Mapping[str, object], key: str) -> tuple[str, ...]:
        raw = data.get(key)
        if raw is None:
            return ()
        if isinstance(raw, str):
            return (raw,)
        if not isinstance(raw, (list, tuple)) or not all(isinstance(x, str) for x in raw):
            raise ConfigurationError(f"'{key}' must be a list of strings")
        return tuple(raw)

    def _rule_toggles(self, raw: object) -> dict[str, bool]:
        if not isinstance(raw, Mapping):
            raise ConfigurationError("'rules' must be a table of rule-id = enabled|disabled")
        toggles: dict[str, bool] = {}
        for rule_id, value in raw.items():
            self._check_rule_id(str(rule_id), "[rules]")
            if isinstance(value, bool):
                toggles[str(rule_id)] = value
            elif isinstance(value, str) and value.strip().lower() in self._ENABLED_WORDS:
                toggles[str(rule_id)] = self._ENABLED_WORDS[value.strip().lower()]
            else:
                raise ConfigurationError(
                    f"rules.{rule_id} must be true/false or 'enabled'/'disabled', got {value!r}"
                )
        return toggles

    def _severity_overrides(self, raw: object) -> dict[str, Severity]:
        if not isinstance(raw, Mapping):
            raise ConfigurationError("'severity' must be a table of rule-id = error|warning|info")
        out: dict[str, Severity] = {}
        for rule_id, value in raw.items():
            self._check_rule_id(str(rule_id), "[severity]")
            if not isinstance(value, str):
                raise ConfigurationError(f"severity.{rule_id} must be a string")
            out[str(rule_id)] = self._severity(value, str(rule_id))
        return out

    @staticmethod
    def _severity(value: str, rule_id: str) -> Severity:
        try:
            return Severity.parse(value)
        except ValueError as exc:
            raise ConfigurationError(f"severity for '{rule_id}': {exc}") from exc

    @staticmethod
    def _max_length(raw: object) -> int:
        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
            raise ConfigurationError("'max-example-length' must be a positive integer")
        return raw

    @staticmethod
    def _keywords(raw: object) -> dict[str, NodeKind]:
        """Project-specific DSL aliases, e.g. {scenario_outline = "example"}."""
        if not isinstance(raw, Mapping):
            raise ConfigurationError("'keywords' must be a table of name = suite|context|example")
        out: dict[str, NodeKind] = {}
        for name, kind in raw.items():
            if not str(name).isidentifier():
                raise ConfigurationError(f"keywords: '{name}' is not a valid method name")
            try:
                out[str(name)] = NodeKind[str(kind).upper()]
            except KeyError:
                raise ConfigurationError(
                    f"keywords.{name} must be 'suite', 'context' or 'example', got {kind!r}"
                ) from None
        return out
