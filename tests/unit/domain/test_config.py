"""Unit tests for ConfigurationLoader and LinterConfig."""

import logging
import re

import pytest

from spec_style_linter.domain.config import ConfigOverrides, ConfigurationLoader, LinterConfig
from spec_style_linter.domain.constants import DEFAULT_CONTEXT_PREFIXES, DEFAULT_INCLUDE
from spec_style_linter.domain.entities import NodeKind, Severity
from spec_style_linter.domain.exceptions import ConfigurationError

RULE_IDS = ("no-should", "one-expectation", "context-wording", "example-length")


@pytest.fixture
def loader() -> ConfigurationLoader:
    return ConfigurationLoader(RULE_IDS)


class TestDefaults:
    def test_empty_mapping_gives_defaults(self, loader: ConfigurationLoader) -> None:
        config = loader.build({})
        assert config == LinterConfig()
        assert config.include == DEFAULT_INCLUDE
        assert config.context_prefixes == DEFAULT_CONTEXT_PREFIXES
        assert config.max_example_length == 40

    def test_rules_are_enabled_unless_toggled(self) -> None:
        config = LinterConfig(rule_toggles={"no-should": False})
        assert not config.is_enabled("no-should")
        assert config.is_enabled("one-expectation")

    def test_severity_for_falls_back_to_default(self) -> None:
        config = LinterConfig(severity_overrides={"no-should": Severity.ERROR})
        assert config.severity_for("no-should", Severity.WARNING) is Severity.ERROR
        assert config.severity_for("example-length", Severity.INFO) is Severity.INFO


class TestFileValues:
    def test_full_section(self, loader: ConfigurationLoader) -> None:
        config = loader.build(
            {
                "include": ["spec/**/*_spec.rb"],
                "exclude": ["spec/legacy/**"],
                "rules": {"example-length": "disabled", "no-should": True},
                "severity": {"one-expectation": "ERROR"},
                "context-prefixes": ["When", "with", "for"],
                "max-example-length": 60,
                "keywords": {"scenario_outline": "example", "feature_group": "suite"},
            }
        )
        assert config.include == ("spec/**/*_spec.rb",)
        assert config.exclude == ("spec/legacy/**",)
        assert config.rule_toggles == {"example-length": False, "no-should": True}
        assert config.severity_overrides == {"one-expectation": Severity.ERROR}
        assert config.context_prefixes == ("when", "with", "for")
        assert config.max_example_length == 60
        assert config.extra_keywords == {"scenario_outline": NodeKind.EXAMPLE, "feature_group": NodeKind.SUITE}

    def test_underscored_keys_are_accepted(self, loader: ConfigurationLoader) -> None:
        assert loader.build({"max_example_length": 25}).max_example_length == 25

    def test_unknown_key_is_logged_not_fatal(self, loader: ConfigurationLoader, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="spec_style_linter"):
            loader.build({"colour": "always"})
        assert "colour" in caplog.text

    def test_single_string_is_a_one_element_list(self, loader: ConfigurationLoader) -> None:
        assert loader.build({"include": "**/*.rb"}).include == ("**/*.rb",)

    @pytest.mark.parametrize(
        "raw, fragment",
        [
            ({"rules": {"no-such-rule": "enabled"}}, "Unknown rule id 'no-such-rule'"),
            ({"severity": {"no-should": "fatal"}}, "severity for 'no-should'"),
            ({"severity": {"made-up": "error"}}, "Unknown rule id 'made-up'"),
            ({"rules": {"no-should": "maybe"}}, "rules.no-should"),
            ({"include": [1, 2]}, "'include' must be a list of strings"),
            ({"max-example-length": 0}, "positive integer"),
            ({"max-example-length": True}, "positive integer"),
            ({"keywords": {"scenario_outline": "step"}}, "keywords.scenario_outline"),
            ({"keywords": {"not a name": "example"}}, "not a valid method name"),
            ({"rules": ["no-should"]}, "'rules' must be a table"),
        ],
    )
    def test_invalid_values_are_fatal(self, loader: ConfigurationLoader, raw: dict, fragment: str) -> None:
        with pytest.raises(ConfigurationError, match=re.escape(fragment)):
            loader.build(raw)


class TestOverrides:
    def test_cli_overrides_win(self, loader: ConfigurationLoader) -> None:
        overrides = ConfigOverrides(
            enable=("example-length",),
            disable=("no-should",),
            severity=("context-wording=error",),
            include=("**/*_test.rb",),
            exclude=("tmp/**",),
        )
        config = loader.build(
            {"rules": {"example-length": "disabled"}, "exclude": ["spec/legacy/**"]}, overrides
        )
        assert config.is_enabled("example-length")
        assert not config.is_enabled("no-should")
        assert config.severity_for("context-wording", Severity.WARNING) is Severity.ERROR
        assert config.include == ("**/*_test.rb",)
        assert config.exclude == ("spec/legacy/**", "tmp/**")

    def test_unknown_rule_in_override_is_fatal(self, loader: ConfigurationLoader) -> None:
        with pytest.raises(ConfigurationError, match="--disable"):
            loader.build({}, ConfigOverrides(disable=("nope",)))

    def test_malformed_severity_override(self, loader: ConfigurationLoader) -> None:
        with pytest.raises(ConfigurationError, match="RULE=LEVEL"):
            loader.build({}, ConfigOverrides(severity=("no-should",)))
