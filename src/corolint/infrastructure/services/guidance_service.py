"""GuidanceService: loads the rule registry and provides manual instructions per rule."""

from pathlib import Path
from typing import cast

import yaml

from corolint.domain.protocols import GuidanceServiceProtocol
from corolint.domain.registry_types import RuleRegistryEntry

DEFAULT_KEY = "_default"


class GuidanceService(GuidanceServiceProtocol):
    """Loads rule_registry.yaml and resolves entries by rule code or symbol."""

    def __init__(self, registry_path: str | None = None) -> None:
        if registry_path is not None:
            self._path = Path(registry_path)
        else:
            # Default: packaged resource next to this package
            _base = Path(__file__).resolve().parent.parent
            self._path = _base / "resources" / "rule_registry.yaml"
        self._registry: dict[str, RuleRegistryEntry] = {}
        self._load()

    def _load(self) -> None:
        if self._path.exists():
            with open(self._path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
                self._registry = cast(dict[str, RuleRegistryEntry], data) if isinstance(data, dict) else {}
        else:
            self._registry = {}

    def get_registry(self) -> dict[str, RuleRegistryEntry]:
        """Return a shallow copy of the loaded registry, without the default entry."""
        return {k: v for k, v in self._registry.items() if k != DEFAULT_KEY}

    def get_entry(self, rule_code: str) -> RuleRegistryEntry | None:
        """Return the registry entry for a rule by code (case-insensitive) or symbol."""
        code = self.resolve_code(rule_code)
        return cast(RuleRegistryEntry, dict(self._registry[code])) if code else None

    def resolve_code(self, rule_code: str) -> str | None:
        """Return the canonical code for a code or symbol."""
        if rule_code.upper() in self._registry and rule_code.upper() != DEFAULT_KEY.upper():
            return rule_code.upper()
        for code, e in self._registry.items():
            if code != DEFAULT_KEY and e.get("symbol") == rule_code:
                return code
        return None

    def get_manual_instructions(self, rule_code: str) -> str | None:
        """Return manual fix instructions for the rule, falling back to the default entry."""
        entry = self.get_entry(rule_code)
        if entry and "manual_instructions" in entry:
            return str(entry["manual_instructions"]).strip()
        default_entry = self._registry.get(DEFAULT_KEY)
        if default_entry and "manual_instructions" in default_entry:
            return str(default_entry["manual_instructions"]).strip()
        return None

    def get_references(self, rule_code: str) -> list[str]:
        entry = self.get_entry(rule_code)
        return [str(ref) for ref in entry.get("references", [])] if entry else []
