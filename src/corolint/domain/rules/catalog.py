"""The rule catalog: every rule the engine ships, in catalog order."""

from corolint.domain.config import EngineConfig
from corolint.domain.rules import BaseRule
from corolint.domain.rules.blocking_rules import (
    BlockingBridgeDelayInTestRule,
    BlockingBridgeInSuspendRule,
    RedundantTaskWrapRule,
)
from corolint.domain.rules.cancellation_rules import (
    CancellationSubclassRule,
    CancellationSwallowedRule,
    LoopWithoutCooperationRule,
    ScopeRelaunchAfterCancelRule,
    UnprotectedSuspendInFinallyRule,
)
from corolint.domain.rules.channel_rules import ChannelNotClosedRule, SharedExclusiveConsumerRule
from corolint.domain.rules.dispatch_rules import (
    BlockingCallInSuspendRule,
    BlockingCallOnMainExecutorRule,
    CallerThreadExecutorRule,
    TokenAsBuilderContextRule,
)
from corolint.domain.rules.flow_rules import (
    BlockingCallInFlowRule,
    LifecycleScopeMisuseRule,
    LifecycleUnawareCollectionRule,
)
from corolint.domain.rules.scope_rules import (
    DeferredNotConsumedRule,
    ExternalScopeLaunchRule,
    InlineScopeLaunchRule,
    UnscopedLaunchRule,
    UnstructuredLaunchRule,
    ViewModelScopeMisuseRule,
)

RULE_TYPES: tuple[type[BaseRule], ...] = (
    UnscopedLaunchRule,
    InlineScopeLaunchRule,
    UnstructuredLaunchRule,
    DeferredNotConsumedRule,
    ExternalScopeLaunchRule,
    ViewModelScopeMisuseRule,
    BlockingBridgeInSuspendRule,
    RedundantTaskWrapRule,
    BlockingBridgeDelayInTestRule,
    CallerThreadExecutorRule,
    TokenAsBuilderContextRule,
    BlockingCallInSuspendRule,
    BlockingCallOnMainExecutorRule,
    BlockingCallInFlowRule,
    CancellationSwallowedRule,
    CancellationSubclassRule,
    UnprotectedSuspendInFinallyRule,
    LoopWithoutCooperationRule,
    ScopeRelaunchAfterCancelRule,
    ChannelNotClosedRule,
    SharedExclusiveConsumerRule,
    LifecycleUnawareCollectionRule,
    LifecycleScopeMisuseRule,
)


class RuleCatalog:
    """Instantiated rules, looked up by code (SCOPE_001) or symbol (Unscoped-launch)."""

    def __init__(self, rules: list[BaseRule] | None = None) -> None:
        self._rules: list[BaseRule] = rules if rules is not None else [cls() for cls in RULE_TYPES]

    @property
    def rules(self) -> list[BaseRule]:
        return list(self._rules)

    def enabled(self, config: EngineConfig) -> list[BaseRule]:
        return [r for r in self._rules if config.is_enabled(r.code, r.symbol)]

    def get(self, code_or_symbol: str) -> BaseRule | None:
        wanted = code_or_symbol.strip()
        for rule in self._rules:
            if wanted in (rule.code, rule.symbol) or wanted.upper() == rule.code:
                return rule
        return None

    def __len__(self) -> int:
        return len(self._rules)
