"""The fixed set of shipped rules and how a configuration activates them."""

from typing import TYPE_CHECKING, Optional

from spec_style_linter.domain.entities import Severity
from spec_style_linter.domain.exceptions import ConfigurationError
from spec_style_linter.domain.rules import BaseRule
from spec_style_linter.domain.rules.naming import (
    ContextWording,
    ExampleLength,
    MethodDescription,
    NoShouldInExampleName,
)
from spec_style_linter.domain.rules.structure import (
    NoIteratorGeneratedExamples,
    OneExpectationPerExample,
)

if TYPE_CHECKING:
    from spec_style_linter.domain.config import LinterConfig
    from spec_style_linter.domain.protocols import GuidanceServiceProtocol


class RuleCatalog:
    """Registry of rule classes. The active set is fixed once per run."""

    RULE_TYPES: tuple[type[BaseRule], ...] = (
        NoShouldInExampleName,
        OneExpectationPerExample,
        NoIteratorGeneratedExamples,
        ContextWording,
        ExampleLength,
        MethodDescription,
    )

    def __init__(self, guidance: Optional["GuidanceServiceProtocol"] = None) -> None:
        self._guidance = guidance
        self._by_id = {rule_type.rule_id: rule_type for rule_type in self.RULE_TYPES}

    def rule_ids(self) -> list[str]:
        return [rule_type.rule_id for rule_type in self.RULE_TYPES]

    def get(self, rule_id: str) -> Optional[type[BaseRule]]:
        return self._by_id.get(rule_id)

    def default_severity(self, rule_type: type[BaseRule]) -> Severity:
        """Registry severity wins over the class default. Raises ConfigurationError on a bad registry value."""
        if self._guidance is not None:
            raw = self._guidance.get_default_severity(rule_type.rule_id)
            if raw:
                try:
                    return Severity.parse(raw)
                except ValueError as exc:
                    raise ConfigurationError(f"rule registry entry '{rule_type.rule_id}': {exc}") from exc
        return rule_type.default_severity

    def build(self, config: "LinterConfig") -> tuple[BaseRule, ...]:
        """Instantiate every enabled rule with its effective severity."""
        rules: list[BaseRule] = []
        for rule_type in self.RULE_TYPES:
            if not config.is_enabled(rule_type.rule_id):
                continue
            severity = config.severity_for(rule_type.rule_id, self.default_severity(rule_type))
            rules.append(rule_type(config, severity=severity))
        return tuple(rules)
