"""Pytest configuration and shared fixtures.

Run pytest from the project root; pythonpath in pyproject.toml puts src/ and
tests/ on the import path, so test modules import spec_style_linter and the
spec_test_utils builders directly.
"""

from unittest.mock import MagicMock

import pytest

from spec_style_linter.domain.config import LinterConfig
from spec_style_linter.domain.entities import DescriptionTree
from spec_style_linter.infrastructure.gateways.spec_parser import SpecParser


@pytest.fixture
def config() -> LinterConfig:
    return LinterConfig()


@pytest.fixture
def parse():
    """parse(source, path=...) -> DescriptionTree with the default configuration."""
    parser = SpecParser(LinterConfig())

    def _parse(source: str, path: str = "spec/sample_spec.rb") -> DescriptionTree:
        return parser.parse(source, path)

    return _parse


@pytest.fixture
def telemetry() -> MagicMock:
    return MagicMock()
