"""Channel rules (CHANNEL_001, CHANNEL_002). Purely syntactic: same function, same identifier."""

from collections import defaultdict

from corolint.domain.constants import (
    AUTO_CLOSING_PRODUCERS,
    CHANNEL_CLOSE_CALLS,
    CHANNEL_CONSTRUCTORS,
    TASK_LAUNCHERS,
)
from corolint.domain.context import RuleContext
from corolint.domain.entities import Finding, Severity
from corolint.domain.rules import BaseRule, ScopeWalker
from corolint.domain.syntax import NodeKind, Role, SyntaxNode


class ChannelNotClosedRule(BaseRule):
    """CHANNEL_001: `val ch = Channel<T>()` with no `ch.close()` anywhere in the function."""

    code = "CHANNEL_001"
    symbol = "Channel-not-closed"
    severity = Severity.WARNING
    description = "A manually created Channel that is never closed leaves receivers suspended forever."
    doc_anchor = "71-forgetting-to-close-manual-channels"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        findings: list[Finding] = []
        for constructor in context.calls(*CHANNEL_CONSTRUCTORS):
            if constructor.receiver is not None:
                continue
            name = self._bound_name(constructor)
            if name is None:
                continue
            if classifier.is_inside_builder_lambda(constructor, AUTO_CLOSING_PRODUCERS):
                continue
            if self._closed(self._owner(constructor), name):
                continue
            findings.append(
                self.finding(
                    constructor,
                    f"Channel '{name}' may never be closed. Use produce {{ }} or call {name}.close() "
                    "when the sender is done.",
                )
            )
        return findings

    @staticmethod
    def _bound_name(constructor: SyntaxNode) -> str | None:
        """`val name = Channel()` or `name = Channel()`."""
        parent = constructor.parent
        if parent is None:
            return None
        if parent.kind is NodeKind.PROPERTY and constructor.role is Role.INITIALIZER:
            return parent.name
        if parent.kind is NodeKind.BINARY and parent.attr("operator") == "=" and constructor.role is Role.RIGHT:
            target = parent.child(Role.LEFT)
            if target is not None and target.kind is NodeKind.NAME:
                return target.name
        return None

    @staticmethod
    def _owner(node: SyntaxNode) -> SyntaxNode:
        for ancestor in node.ancestors():
            if ancestor.kind in (NodeKind.FUNCTION, NodeKind.CLASS):
                return ancestor
        return node.tree.root

    @staticmethod
    def _closed(owner: SyntaxNode, name: str) -> bool:
        for node in owner.descendants():
            if node.kind is not NodeKind.CALL or node.callee not in CHANNEL_CLOSE_CALLS:
                continue
            receiver = node.receiver
            if receiver is not None and receiver.text in (name, f"this.{name}"):
                return True
        return False


class SharedExclusiveConsumerRule(BaseRule):
    """CHANNEL_002: the same channel drained with consumeEach from two launch sites."""

    code = "CHANNEL_002"
    symbol = "Shared-exclusive-consumer"
    severity = Severity.WARNING
    description = "consumeEach cancels the channel when it finishes; concurrent consumers race on it."
    doc_anchor = "72-sharing-consumeeach-among-multiple-consumers"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        groups: dict[tuple[int, str], list[tuple[SyntaxNode, SyntaxNode]]] = defaultdict(list)
        for channel in context.consumed_channels:
            for consumer in context.consumers_of(channel):
                site = classifier.enclosing_builder_call(consumer, TASK_LAUNCHERS)
                if site is None:
                    continue
                function = ScopeWalker.function_scope(site)
                groups[(function.id, channel)].append((site, consumer))

        findings: list[Finding] = []
        for (_, channel), pairs in groups.items():
            if len({site.id for site, _ in pairs}) < 2:
                continue
            for _, consumer in pairs:
                findings.append(
                    self.finding(
                        consumer,
                        f"Channel '{channel}' is drained with {consumer.callee} from multiple coroutines. "
                        f"Use a single consumer, or iterate with 'for (x in {channel})' to fan out.",
                    )
                )
        return findings
