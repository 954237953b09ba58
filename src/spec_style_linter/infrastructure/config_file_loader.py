"""Load [tool.specstyle] from pyproject.toml or an explicit TOML file. Infrastructure I/O only."""

import logging
import tomllib
from pathlib import Path
from typing import Optional

from spec_style_linter.domain.constants import CONFIG_SECTION
from spec_style_linter.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigFileLoader:
    """
    Finds and reads the raw configuration mapping.

    Validation happens in the domain ConfigurationLoader; this class only
    locates the file and decodes TOML.
    """

    def __init__(self, start_dir: Optional[Path] = None) -> None:
        self._start_dir = start_dir

    def load(self, explicit: Optional[str] = None) -> tuple[dict[str, object], Optional[str]]:
        """Return (raw config, source file). The source is None when nothing was found."""
        if explicit is not None:
            path = Path(explicit)
            if not path.is_file():
                raise ConfigurationError(f"Config file not found: {explicit}")
            data = self._read(path)
            section = self._section(data)
            # A standalone file may hold the keys at top level.
            return (section if section is not None else data), str(path)

        current_path = (self._start_dir or Path.cwd()).resolve()
        while True:
            config_file = current_path / "pyproject.toml"
            if config_file.is_file():
                section = self._section(self._read(config_file))
                logger.debug("Using %s (section found: %s)", config_file, section is not None)
                return (section or {}), str(config_file)
            if current_path.parent == current_path:
                return {}, None
            current_path = current_path.parent

    @staticmethod
    def _read(path: Path) -> dict[str, object]:
        try:
            with path.open("rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"{path}: invalid TOML: {exc}") from exc
        except OSError as exc:
            raise ConfigurationError(f"{path}: cannot read config: {exc}") from exc

    @staticmethod
    def _section(data: dict[str, object]) -> Optional[dict[str, object]]:
        tool = data.get("tool")
        if not isinstance(tool, dict):
            return None
        section = tool.get(CONFIG_SECTION)
        if section is None:
            return None
        if not isinstance(section, dict):
            raise ConfigurationError(f"[tool.{CONFIG_SECTION}] must be a table")
        return section
