"""Exception hierarchy. Classification never raises; only malformed input and rule crashes do."""


class CorolintError(Exception):
    """Base class for every error raised by the engine."""


class EngineError(CorolintError):
    """Malformed input tree: missing fields, unknown kinds, broken or cyclic parent links.

    Fatal for one compilation unit only; the aggregator records it and moves on.
    """

    def __init__(self, message: str, unit: str | None = None) -> None:
        self.unit = unit
        self.detail = message
        super().__init__(f"{unit}: {message}" if unit else message)

    def for_unit(self, unit: str) -> "EngineError":
        """Return a copy bound to the given unit path (keeps an existing binding)."""
        if self.unit:
            return self
        return EngineError(self.detail, unit=unit)


class RuleInternalError(CorolintError):
    """A rule raised while checking one file. Converted into an info finding, never propagated."""

    def __init__(self, rule_id: str, unit: str, cause: BaseException) -> None:
        self.rule_id = rule_id
        self.unit = unit
        self.cause = cause
        super().__init__(f"{rule_id} failed on {unit}: {type(cause).__name__}: {cause}")
