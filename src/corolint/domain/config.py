"""Engine configuration. Immutable value objects created by Infrastructure at the composition root."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from corolint.domain.constants import (
    BLOCKING_CALLS,
    COOPERATION_POINTS,
    FRAMEWORK_SCOPE_FACTORIES,
    FRAMEWORK_SCOPE_PROPERTIES,
)

logger = logging.getLogger(__name__)

KNOWN_KEYS: frozenset[str] = frozenset(
    {
        "disable",
        "framework_scopes",
        "framework_scope_factories",
        "cooperation_points",
        "blocking_calls",
        "allowed_scopes",
        "workers",
    }
)


@dataclass(frozen=True)
class Registries:
    """Name registries the classification functions match against. Extended, never replaced."""

    framework_scopes: frozenset[str] = FRAMEWORK_SCOPE_PROPERTIES
    framework_scope_factories: frozenset[str] = FRAMEWORK_SCOPE_FACTORIES
    cooperation_points: frozenset[str] = COOPERATION_POINTS
    blocking_calls: frozenset[str] = BLOCKING_CALLS
    allowed_scopes: frozenset[str] = frozenset()

    def extended(
        self,
        framework_scopes: list[str] | tuple[str, ...] = (),
        framework_scope_factories: list[str] | tuple[str, ...] = (),
        cooperation_points: list[str] | tuple[str, ...] = (),
        blocking_calls: list[str] | tuple[str, ...] = (),
        allowed_scopes: list[str] | tuple[str, ...] = (),
    ) -> Registries:
        """Return a copy with the given names added to each registry."""
        return replace(
            self,
            framework_scopes=self.framework_scopes | frozenset(framework_scopes),
            framework_scope_factories=self.framework_scope_factories | frozenset(framework_scope_factories),
            cooperation_points=self.cooperation_points | frozenset(cooperation_points),
            blocking_calls=self.blocking_calls | frozenset(blocking_calls),
            allowed_scopes=self.allowed_scopes | frozenset(allowed_scopes),
        )


@dataclass(frozen=True)
class EngineConfig:
    """Per-run engine settings: disabled rules (by code or symbol), registries, worker count."""

    disabled: frozenset[str] = frozenset()
    registries: Registries = field(default_factory=Registries)
    workers: int = 1

    def is_enabled(self, code: str, symbol: str) -> bool:
        return code not in self.disabled and symbol not in self.disabled


class ConfigurationLoader:
    """
    Immutable view over the [tool.corolint] table.

    Created by Infrastructure from the config dict. Domain does not read the
    filesystem; the composition root calls ConfigFileLoader.load_config_from_fs()
    and constructs ConfigurationLoader(config_dict).
    """

    def __init__(self, config_dict: dict[str, object]) -> None:
        self._config = config_dict
        if config_dict:
            self.validate_config(config_dict)

    def validate_config(self, config: dict[str, object]) -> None:
        """Warn about keys the engine does not understand or values of the wrong shape."""
        for key in sorted(set(config) - KNOWN_KEYS):
            logger.warning("Configuration Warning: unknown key '%s' in [tool.corolint] is ignored.", key)
        workers = config.get("workers")
        if workers is not None and (not isinstance(workers, int) or isinstance(workers, bool) or workers < 1):
            logger.warning("Configuration Warning: 'workers' must be a positive integer, got %r.", workers)

    @property
    def config(self) -> dict[str, object]:
        """Return the loaded configuration."""
        return self._config

    def _string_list(self, key: str) -> list[str]:
        raw = self._config.get(key, [])
        if isinstance(raw, list):
            return [str(x) for x in raw if isinstance(x, str)]
        if raw:
            logger.warning("Configuration Warning: '%s' must be a list of strings.", key)
        return []

    @property
    def disabled_rules(self) -> list[str]:
        return self._string_list("disable")

    @property
    def workers(self) -> int:
        raw = self._config.get("workers", 1)
        if isinstance(raw, int) and not isinstance(raw, bool) and raw >= 1:
            return raw
        return 1

    @property
    def registries(self) -> Registries:
        return Registries().extended(
            framework_scopes=self._string_list("framework_scopes"),
            framework_scope_factories=self._string_list("framework_scope_factories"),
            cooperation_points=self._string_list("cooperation_points"),
            blocking_calls=self._string_list("blocking_calls"),
            allowed_scopes=self._string_list("allowed_scopes"),
        )

    def engine_config(self, workers: int | None = None, disable: list[str] | None = None) -> EngineConfig:
        """Build the EngineConfig; explicit arguments (e.g. from the CLI) take precedence."""
        disabled = set(self.disabled_rules)
        disabled.update(disable or [])
        return EngineConfig(
            disabled=frozenset(disabled),
            registries=self.registries,
            workers=workers if workers is not None else self.workers,
        )
