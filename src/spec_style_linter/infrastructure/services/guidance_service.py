"""GuidanceService: loads the rule registry (titles, default severities, guidance text)."""

from pathlib import Path
from typing import Optional, cast

import yaml

from spec_style_linter.domain.exceptions import ConfigurationError
from spec_style_linter.domain.protocols import GuidanceServiceProtocol
from spec_style_linter.domain.registry_types import RuleRegistryEntry


class GuidanceService(GuidanceServiceProtocol):
    """Loads rule_registry.yaml and answers get_entry / get_guidance lookups."""

    def __init__(self, registry_path: Optional[str] = None) -> None:
        if registry_path is not None:
            self._path = Path(registry_path)
        else:
            # Default: packaged resource next to this package
            _base = Path(__file__).resolve().parent.parent
            self._path = _base / "resources" / "rule_registry.yaml"
        self._registry: dict[str, RuleRegistryEntry] = {}
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            self._registry = {}
            return
        with open(self._path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"{self._path}: invalid rule registry: {exc}") from exc
        self._registry = cast(dict[str, RuleRegistryEntry], data) if isinstance(data, dict) else {}

    def get_registry(self) -> dict[str, RuleRegistryEntry]:
        """Return a shallow copy of the loaded registry."""
        return dict(self._registry)

    def rule_ids(self) -> list[str]:
        return sorted(self._registry)

    def get_entry(self, rule_id: str) -> Optional[RuleRegistryEntry]:
        """Return the full registry entry for the rule, or None."""
        entry = self._registry.get(rule_id)
        return cast(RuleRegistryEntry, dict(entry)) if entry else None

    def get_default_severity(self, rule_id: str) -> Optional[str]:
        entry = self._registry.get(rule_id) or {}
        severity = entry.get("severity")
        return str(severity) if severity else None

    def get_title(self, rule_id: str) -> str:
        entry = self._registry.get(rule_id) or {}
        return str(entry.get("title") or rule_id.replace("-", " ").capitalize())

    def get_guidance(self, rule_id: str) -> str:
        """Return the guidance text for a rule, with examples when the registry has them."""
        entry = self._registry.get(rule_id)
        if not entry:
            return "No guidance recorded for this rule."
        parts = [str(entry.get("summary") or entry.get("title") or rule_id).strip()]
        if entry.get("guidance"):
            parts.append(str(entry["guidance"]).strip())
        if entry.get("bad_example"):
            parts.append("Bad:\n" + self._indent(str(entry["bad_example"])))
        if entry.get("good_example"):
            parts.append("Good:\n" + self._indent(str(entry["good_example"])))
        if entry.get("heuristic"):
            parts.append("This rule is a best-effort heuristic; expect occasional false positives.")
        for reference in entry.get("references") or []:
            parts.append(f"See: {reference}")
        return "\n\n".join(parts)

    @staticmethod
    def _indent(block: str) -> str:
        return "\n".join(f"    {line}" if line else "" for line in block.rstrip().splitlines())
