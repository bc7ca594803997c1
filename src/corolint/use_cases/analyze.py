"""Use Case: Analyze - apply every enabled rule to each compilation unit and aggregate the findings."""

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from corolint.domain.classification import Classifier
from corolint.domain.config import EngineConfig
from corolint.domain.constants import DOC_BASE_URL
from corolint.domain.context import RuleContext
from corolint.domain.entities import AnalysisReport, Finding, Severity, UnitFailure
from corolint.domain.errors import EngineError, RuleInternalError
from corolint.domain.protocols import NameResolverProtocol, TreeLoaderProtocol
from corolint.domain.rules import BaseRule
from corolint.domain.rules.catalog import RuleCatalog
from corolint.domain.syntax import Span, SyntaxTree

logger = logging.getLogger(__name__)

RULE_FAILED_CODE = "INTERNAL_001"
RULE_FAILED_SYMBOL = "Rule-failed"


@dataclass
class UnitResult:
    """Local buffer of one unit's analysis, merged at the join."""

    unit: str
    findings: list[Finding] = field(default_factory=list)
    failure: UnitFailure | None = None


class AnalyzeUseCase:
    """
    Build a RuleContext per unit, run the enabled rules, merge, sort and de-duplicate.

    An EngineError while loading or validating a unit is recorded once and the unit
    contributes no findings. A rule raising on a unit becomes one info finding for
    that unit; the remaining rules still run.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        catalog: RuleCatalog | None = None,
        resolver: NameResolverProtocol | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.catalog = catalog or RuleCatalog()
        self.classifier = Classifier(self.config.registries, resolver)

    @classmethod
    def aggregate(
        cls, trees: Iterable[SyntaxTree], rules: Iterable[BaseRule], config: EngineConfig | None = None
    ) -> AnalysisReport:
        """Run an explicit rule set over the given trees."""
        return cls(config, RuleCatalog(list(rules))).execute(trees)

    @property
    def rules(self) -> list[BaseRule]:
        return self.catalog.enabled(self.config)

    def execute(self, trees: Iterable[SyntaxTree]) -> AnalysisReport:
        """Analyze already-built trees."""
        tasks = [(tree.path, (lambda t=tree: t)) for tree in trees]
        return self._run(tasks)

    def execute_paths(self, paths: list[str], loader: TreeLoaderProtocol) -> AnalysisReport:
        """Discover and load tree documents, then analyze them. Unreadable documents are unit failures."""
        units = loader.discover(paths)
        logger.debug("Discovered %d compilation unit(s) under %s", len(units), paths)
        tasks = [(unit, (lambda u=unit: loader.load(u))) for unit in units]
        return self._run(tasks)

    def analyze_unit(self, tree: SyntaxTree) -> list[Finding]:
        """Findings for one unit, in emission order. Rule failures are converted, never propagated."""
        context = RuleContext(tree, self.classifier)
        findings: list[Finding] = []
        for rule in self.rules:
            try:
                findings.extend(rule.check(context))
            except Exception as exc:
                error = RuleInternalError(rule.code, tree.path, exc)
                logger.exception("%s", error)
                findings.append(self._rule_failed(rule, tree, error))
        return findings

    def _run(self, tasks: list[tuple[str, Callable[[], SyntaxTree]]]) -> AnalysisReport:
        workers = max(1, self.config.workers)
        if workers > 1 and len(tasks) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(lambda task: self._run_unit(*task), tasks))
        else:
            results = [self._run_unit(unit, load) for unit, load in tasks]
        return self._merge(results)

    def _run_unit(self, unit: str, load: Callable[[], SyntaxTree]) -> UnitResult:
        try:
            tree = load()
            return UnitResult(unit, findings=self.analyze_unit(tree))
        except EngineError as exc:
            error = exc.for_unit(unit)
            logger.warning("Skipping %s: %s", unit, error.detail)
            return UnitResult(unit, failure=UnitFailure(unit, error.detail))

    @staticmethod
    def _merge(results: list[UnitResult]) -> AnalysisReport:
        seen: set[tuple[str, Span]] = set()
        findings: list[Finding] = []
        for finding in sorted((f for r in results for f in r.findings), key=lambda f: f.sort_key):
            # Rule-failed findings share the root span but each names a different rule.
            if finding.rule_id != RULE_FAILED_CODE:
                if finding.dedupe_key in seen:
                    continue
                seen.add(finding.dedupe_key)
            findings.append(finding)
        failures = tuple(r.failure for r in results if r.failure is not None)
        return AnalysisReport(
            findings=tuple(findings),
            errors=failures,
            units_analyzed=sum(1 for r in results if r.failure is None),
        )

    @staticmethod
    def _rule_failed(rule: BaseRule, tree: SyntaxTree, error: RuleInternalError) -> Finding:
        return Finding(
            rule_id=RULE_FAILED_CODE,
            symbol=RULE_FAILED_SYMBOL,
            severity=Severity.INFO,
            span=tree.root.span,
            message=f"[{RULE_FAILED_CODE}] Rule {rule.code} ({rule.symbol}) failed: {error.cause}",
            doc_anchor=DOC_BASE_URL,
        )
