"""Read-only per-unit facade handed to every rule."""

from collections import defaultdict
from collections.abc import Mapping
from types import MappingProxyType

from corolint.domain.classification import Classifier
from corolint.domain.constants import EXCLUSIVE_CONSUMERS
from corolint.domain.syntax import NodeKind, SyntaxNode, SyntaxTree


class RuleContext:
    """
    One compilation unit plus indices built in a single pre-order traversal.

    Shared read-only by all rules of a run and discarded once its findings are
    collected. Index values are tuples in source order.
    """

    def __init__(self, tree: SyntaxTree, classifier: Classifier) -> None:
        self.tree = tree
        self.path = tree.path
        self.classifier = classifier
        self.is_test_file = classifier.is_test_file(tree.path)

        by_kind: dict[NodeKind, list[SyntaxNode]] = defaultdict(list)
        by_callee: dict[str, list[SyntaxNode]] = defaultdict(list)
        consumers: dict[str, list[SyntaxNode]] = defaultdict(list)
        for node in tree.iter_nodes():
            by_kind[node.kind].append(node)
            if node.kind is NodeKind.CALL:
                by_callee[node.callee].append(node)
                receiver = node.receiver
                if node.callee in EXCLUSIVE_CONSUMERS and receiver is not None and receiver.kind is NodeKind.NAME:
                    consumers[receiver.text].append(node)

        self._by_kind: Mapping[NodeKind, tuple[SyntaxNode, ...]] = RuleContext._freeze(by_kind)
        self._by_callee: Mapping[str, tuple[SyntaxNode, ...]] = RuleContext._freeze(by_callee)
        self._consumers: Mapping[str, tuple[SyntaxNode, ...]] = RuleContext._freeze(consumers)

    @staticmethod
    def _freeze(index: Mapping) -> Mapping:
        return MappingProxyType({key: tuple(values) for key, values in index.items()})

    def nodes(self, kind: NodeKind) -> tuple[SyntaxNode, ...]:
        return self._by_kind.get(kind, ())

    def calls(self, *callees: str) -> tuple[SyntaxNode, ...]:
        """All calls, or the calls to any of `callees`, in source order."""
        if not callees:
            return self.nodes(NodeKind.CALL)
        if len(callees) == 1:
            return self._by_callee.get(callees[0], ())
        found = [call for callee in set(callees) for call in self._by_callee.get(callee, ())]
        return tuple(sorted(found, key=lambda n: n.id))

    def consumers_of(self, channel: str) -> tuple[SyntaxNode, ...]:
        """Exclusive-consume call sites (`channel.consumeEach { }`) by receiver text."""
        return self._consumers.get(channel, ())

    @property
    def consumed_channels(self) -> tuple[str, ...]:
        return tuple(self._consumers)
