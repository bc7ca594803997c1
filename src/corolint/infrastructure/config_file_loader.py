"""Load [tool.corolint] from pyproject.toml. Infrastructure I/O only."""

import logging
import tomllib
from pathlib import Path

logger = logging.getLogger(__name__)


class ConfigFileLoader:
    """
    Loads config from the nearest pyproject.toml, walking up from the working directory.
    """

    @staticmethod
    def load_config_from_fs(start: Path | None = None) -> dict[str, object]:
        """Load [tool.corolint] from the nearest pyproject.toml. Empty when there is none."""
        current_path = (start or Path.cwd()).resolve()
        for directory in (current_path, *current_path.parents):
            config_file = directory / "pyproject.toml"
            if not config_file.exists():
                continue
            try:
                with config_file.open("rb") as f:
                    data = tomllib.load(f)
            except OSError:
                continue
            except tomllib.TOMLDecodeError as exc:
                logger.warning("Configuration Warning: cannot parse %s: %s", config_file, exc)
                return {}
            tool_section = data.get("tool", {}) or {}
            logger.debug("Loaded configuration from %s", config_file)
            return tool_section.get("corolint", {}) or {}
        return {}
