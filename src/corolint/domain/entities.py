from dataclasses import dataclass
from enum import Enum

from corolint.domain.syntax import Span


class Severity(str, Enum):
    """Finding severity. INFO is reserved for rule failures."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ScopeKind(Enum):
    """Variants of a classified launch receiver."""

    UNSCOPED_GLOBAL = "UnscopedGlobal"
    FRAMEWORK_SCOPE = "FrameworkScope"
    ANNOTATED_SCOPE = "AnnotatedScope"
    INLINE_SCOPE_CONSTRUCTION = "InlineScopeConstruction"
    UNCLASSIFIED = "Unclassified"


@dataclass(frozen=True)
class ScopeReference:
    """Classification of a launch receiver. `name` is set for framework and annotated scopes."""

    kind: ScopeKind
    name: str | None = None

    @property
    def is_structured(self) -> bool:
        return self.kind in (ScopeKind.FRAMEWORK_SCOPE, ScopeKind.ANNOTATED_SCOPE)


UNCLASSIFIED = ScopeReference(ScopeKind.UNCLASSIFIED)


@dataclass(frozen=True)
class Finding:
    """A rule violation at a source span. The message always begins with `[<rule_id>]`."""

    rule_id: str
    symbol: str
    severity: Severity
    span: Span
    message: str
    doc_anchor: str

    @property
    def sort_key(self) -> tuple[str, int, int, str]:
        return (self.span.file, self.span.start_line, self.span.start_col, self.rule_id)

    @property
    def dedupe_key(self) -> tuple[str, Span]:
        return (self.rule_id, self.span)

    def to_dict(self) -> dict[str, object]:
        """Convert to the wire shape consumed by front ends."""
        return {
            "ruleId": self.rule_id,
            "severity": self.severity.value,
            "span": self.span.to_dict(),
            "message": self.message,
            "docAnchor": self.doc_anchor,
        }


@dataclass(frozen=True)
class UnitFailure:
    """A compilation unit the engine could not analyze (EngineError)."""

    unit: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"unit": self.unit, "message": self.message}


@dataclass(frozen=True)
class AnalysisReport:
    """Ordered, de-duplicated findings of one run plus per-unit failures."""

    findings: tuple[Finding, ...] = ()
    errors: tuple[UnitFailure, ...] = ()
    units_analyzed: int = 0

    def has_errors(self) -> bool:
        """True if any finding has error severity."""
        return any(f.severity is Severity.ERROR for f in self.findings)

    def findings_for(self, unit: str) -> list[Finding]:
        return [f for f in self.findings if f.span.file == unit]

    def counts(self) -> dict[str, int]:
        """Number of findings per severity value."""
        result: dict[str, int] = {s.value: 0 for s in Severity}
        for finding in self.findings:
            result[finding.severity.value] += 1
        return result

    def to_dict(self) -> dict[str, object]:
        return {
            "findings": [f.to_dict() for f in self.findings],
            "errors": [e.to_dict() for e in self.errors],
            "summary": {"units": self.units_analyzed, **self.counts()},
        }

