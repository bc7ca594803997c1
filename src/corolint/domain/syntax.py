"""
Arena-backed syntax tree: the minimal node contract every host adapts its own tree to.

A SyntaxTree stores one compilation unit as parallel tuples indexed by integer
node id (kinds, attributes, roles, children ids, parent ids, spans). Parent
lookups are O(1) and ancestry walks are O(depth). The tree is validated once
at construction and is immutable afterwards. SyntaxNode is a cheap view
(tree, id) handed to classification functions and rules.
"""

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from corolint.domain.errors import EngineError

NO_PARENT: int = -1

AttrValue = str | bool | int | tuple[str, ...] | None


class NodeKind(str, Enum):
    """Node kinds understood by the engine. Hosts map anything else to OTHER."""

    FILE = "file"
    CLASS = "class"
    FUNCTION = "function"
    PARAMETER = "parameter"
    PROPERTY = "property"
    BLOCK = "block"
    CALL = "call"
    LAMBDA = "lambda"
    NAME = "name"
    TRY = "try"
    CATCH = "catch"
    LOOP = "loop"
    IF = "if"
    BINARY = "binary"
    THROW = "throw"
    RETURN = "return"
    LITERAL = "literal"
    OTHER = "other"


class Role(str, Enum):
    """Slot a child occupies in its parent."""

    ROOT = "root"
    RECEIVER = "receiver"
    ARGUMENT = "argument"
    LAMBDA = "lambda"
    BODY = "body"
    STATEMENT = "statement"
    PARAMETER = "parameter"
    MEMBER = "member"
    INITIALIZER = "initializer"
    TRY = "try"
    CATCH = "catch"
    FINALLY = "finally"
    CONDITION = "condition"
    THEN = "then"
    ELSE = "else"
    ITERABLE = "iterable"
    LEFT = "left"
    RIGHT = "right"
    EXPRESSION = "expression"


REQUIRED_ATTRS: Mapping[NodeKind, tuple[str, ...]] = MappingProxyType(
    {
        NodeKind.CALL: ("callee",),
        NodeKind.FUNCTION: ("name",),
        NodeKind.CLASS: ("name",),
        NodeKind.NAME: ("name",),
        NodeKind.PROPERTY: ("name",),
        NodeKind.PARAMETER: ("name",),
    }
)


@dataclass(frozen=True, order=True)
class Span:
    """Source range. Ordering is (file, start line, start column, end line, end column)."""

    file: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def contains(self, other: "Span") -> bool:
        """True if other lies within this span (same file)."""
        if self.file != other.file:
            return False
        return (self.start_line, self.start_col) <= (other.start_line, other.start_col) and (
            other.end_line,
            other.end_col,
        ) <= (self.end_line, self.end_col)

    def to_dict(self) -> dict[str, str | int]:
        return {
            "file": self.file,
            "startLine": self.start_line,
            "startCol": self.start_col,
            "endLine": self.end_line,
            "endCol": self.end_col,
        }

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}:{self.start_col}"


class SyntaxTree:
    """One compilation unit. Validated on construction; never mutated afterwards."""

    def __init__(
        self,
        path: str,
        kinds: Sequence[NodeKind],
        attrs: Sequence[Mapping[str, AttrValue]],
        roles: Sequence[Role],
        children: Sequence[Sequence[int]],
        parents: Sequence[int],
        spans: Sequence[Span],
    ) -> None:
        self.path = path
        self._kinds = tuple(kinds)
        self._attrs = tuple(MappingProxyType(dict(a)) for a in attrs)
        self._roles = tuple(roles)
        self._children = tuple(tuple(c) for c in children)
        self._parents = tuple(parents)
        self._spans = tuple(spans)
        self._root_id = self._validate()

    def _validate(self) -> int:
        """Check arena consistency and return the root id. Raises EngineError."""
        size = len(self._kinds)
        if size == 0:
            raise EngineError("empty syntax tree", unit=self.path)
        lengths = {len(self._attrs), len(self._roles), len(self._children), len(self._parents), len(self._spans)}
        if lengths != {size}:
            raise EngineError("arena columns have different lengths", unit=self.path)

        roots = [i for i, p in enumerate(self._parents) if p == NO_PARENT]
        if len(roots) != 1:
            raise EngineError(f"expected exactly one root node, found {len(roots)}", unit=self.path)

        for node_id, kind in enumerate(self._kinds):
            if not isinstance(kind, NodeKind):
                raise EngineError(f"node {node_id} has unknown kind {kind!r}", unit=self.path)
            for attr in REQUIRED_ATTRS.get(kind, ()):
                if not self._attrs[node_id].get(attr):
                    raise EngineError(
                        f"{kind.value} node {node_id} is missing required field '{attr}'", unit=self.path
                    )
            for child in self._children[node_id]:
                if not 0 <= child < size:
                    raise EngineError(f"node {node_id} references missing child {child}", unit=self.path)
                if self._parents[child] != node_id:
                    raise EngineError(
                        f"parent link of node {child} does not point back to {node_id}", unit=self.path
                    )

        # Every node reachable exactly once from the root; anything else is a cycle or detached.
        seen: set[int] = set()
        stack = [roots[0]]
        while stack:
            node_id = stack.pop()
            if node_id in seen:
                raise EngineError(f"cyclic parent links at node {node_id}", unit=self.path)
            seen.add(node_id)
            stack.extend(self._children[node_id])
        if len(seen) != size:
            raise EngineError("cyclic or detached nodes not reachable from the root", unit=self.path)
        return roots[0]

    def __len__(self) -> int:
        return len(self._kinds)

    @property
    def root(self) -> "SyntaxNode":
        return SyntaxNode(self, self._root_id)

    def node(self, node_id: int) -> "SyntaxNode":
        if not 0 <= node_id < len(self._kinds):
            raise EngineError(f"no node with id {node_id}", unit=self.path)
        return SyntaxNode(self, node_id)

    def iter_nodes(self) -> Iterator["SyntaxNode"]:
        """Pre-order traversal from the root."""
        stack = [self._root_id]
        while stack:
            node_id = stack.pop()
            yield SyntaxNode(self, node_id)
            stack.extend(reversed(self._children[node_id]))


class SyntaxNode:
    """A view of one node. Equality is (tree, id)."""

    __slots__ = ("_tree", "id")

    def __init__(self, tree: SyntaxTree, node_id: int) -> None:
        self._tree = tree
        self.id = node_id

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SyntaxNode) and other._tree is self._tree and other.id == self.id

    def __hash__(self) -> int:
        return hash((id(self._tree), self.id))

    def __repr__(self) -> str:
        label = self.attr("callee") or self.attr("name") or ""
        return f"<SyntaxNode {self.kind.value}#{self.id} {label}>".replace(" >", ">")

    @property
    def tree(self) -> SyntaxTree:
        return self._tree

    @property
    def kind(self) -> NodeKind:
        return self._tree._kinds[self.id]

    @property
    def role(self) -> Role:
        return self._tree._roles[self.id]

    @property
    def span(self) -> Span:
        return self._tree._spans[self.id]

    @property
    def attrs(self) -> Mapping[str, AttrValue]:
        return self._tree._attrs[self.id]

    def attr(self, key: str, default: AttrValue = None) -> AttrValue:
        return self._tree._attrs[self.id].get(key, default)

    @property
    def name(self) -> str:
        """Declared or referenced identifier; empty for anonymous nodes."""
        value = self.attr("name")
        return value if isinstance(value, str) else ""

    @property
    def callee(self) -> str:
        """Callee name of a call node; empty otherwise."""
        value = self.attr("callee")
        return value if isinstance(value, str) else ""

    @property
    def annotations(self) -> tuple[str, ...]:
        value = self.attr("annotations")
        return value if isinstance(value, tuple) else ()

    @property
    def parent(self) -> "SyntaxNode | None":
        parent_id = self._tree._parents[self.id]
        if parent_id == NO_PARENT:
            return None
        return SyntaxNode(self._tree, parent_id)

    @property
    def children(self) -> tuple["SyntaxNode", ...]:
        return tuple(SyntaxNode(self._tree, c) for c in self._tree._children[self.id])

    def children_in(self, role: Role) -> tuple["SyntaxNode", ...]:
        tree = self._tree
        return tuple(SyntaxNode(tree, c) for c in tree._children[self.id] if tree._roles[c] is role)

    def child(self, role: Role) -> "SyntaxNode | None":
        tree = self._tree
        for c in tree._children[self.id]:
            if tree._roles[c] is role:
                return SyntaxNode(tree, c)
        return None

    # Call-shaped accessors (empty / None on other kinds)

    @property
    def receiver(self) -> "SyntaxNode | None":
        return self.child(Role.RECEIVER)

    @property
    def arguments(self) -> tuple["SyntaxNode", ...]:
        return self.children_in(Role.ARGUMENT)

    @property
    def trailing_lambda(self) -> "SyntaxNode | None":
        return self.child(Role.LAMBDA)

    @property
    def statements(self) -> tuple["SyntaxNode", ...]:
        """Direct statements of a file, block or lambda; a body slot is unwrapped first."""
        if self.kind in (NodeKind.FILE, NodeKind.BLOCK, NodeKind.LAMBDA):
            return self.children_in(Role.STATEMENT)
        body = self.child(Role.BODY)
        if body is None:
            return ()
        if body.kind is NodeKind.BLOCK:
            return body.statements
        return (body,)

    def ancestors(self) -> Iterator["SyntaxNode"]:
        """Strict ancestors, nearest first."""
        parents = self._tree._parents
        current = parents[self.id]
        while current != NO_PARENT:
            yield SyntaxNode(self._tree, current)
            current = parents[current]

    def descendants(self) -> Iterator["SyntaxNode"]:
        """Strict descendants in pre-order."""
        tree = self._tree
        stack = list(reversed(tree._children[self.id]))
        while stack:
            node_id = stack.pop()
            yield SyntaxNode(tree, node_id)
            stack.extend(reversed(tree._children[node_id]))

    def is_descendant_of(self, other: "SyntaxNode") -> bool:
        return any(a == other for a in self.ancestors())

    @property
    def text(self) -> str:
        """Compact source-like rendering of names, calls and simple expressions."""
        chain: list[SyntaxNode] = []
        current: SyntaxNode | None = self
        while current is not None and current.kind in (NodeKind.NAME, NodeKind.CALL):
            chain.append(current)
            current = current.receiver
        rendered = current._segment() if current is not None else ""
        for node in reversed(chain):
            segment = node._segment()
            rendered = f"{rendered}.{segment}" if rendered else segment
        return rendered

    def _segment(self) -> str:
        """This node's own text, without its receiver."""
        kind = self.kind
        if kind is NodeKind.NAME:
            return self.name
        if kind is NodeKind.CALL:
            args = ", ".join(a.text for a in self.arguments)
            suffix = " { }" if self.trailing_lambda is not None else ""
            return f"{self.callee}({args}){suffix}"
        if kind is NodeKind.LITERAL:
            return str(self.attr("value", ""))
        if kind is NodeKind.BINARY:
            left = self.child(Role.LEFT)
            right = self.child(Role.RIGHT)
            left_text = left.text if left is not None else ""
            right_text = right.text if right is not None else ""
            return f"{left_text} {self.attr('operator', '?')} {right_text}"
        if kind is NodeKind.LAMBDA:
            return "{ }"
        return self.name or f"<{kind.value}>"
