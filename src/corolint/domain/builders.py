"""
Declarative construction of SyntaxTree arenas.

Hosts (and tests) describe a unit as nested NodeSpec values and flatten it with
TreeBuilder.build. Flattening is iterative and assigns ids in pre-order, so id
order equals source order. Nodes without an explicit span get a synthetic one
derived from their pre-order position that still nests correctly.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from corolint.domain.syntax import AttrValue, NO_PARENT, NodeKind, Role, Span, SyntaxTree

Position = tuple[int, int, int, int]


@dataclass(frozen=True)
class NodeSpec:
    """One node plus its children in (role, spec) order."""

    kind: NodeKind
    attrs: dict[str, AttrValue] = field(default_factory=dict)
    children: tuple[tuple[Role, "NodeSpec"], ...] = ()
    position: Position | None = None

    def at(self, start_line: int, start_col: int, end_line: int | None = None, end_col: int | None = None) -> "NodeSpec":
        """Return a copy pinned to an explicit source position."""
        return replace(
            self,
            position=(
                start_line,
                start_col,
                start_line if end_line is None else end_line,
                start_col if end_col is None else end_col,
            ),
        )


Operand = NodeSpec | str


class TreeBuilder:
    """Factory helpers for NodeSpec values. String operands become dotted name references."""

    @staticmethod
    def build(spec: NodeSpec, path: str) -> SyntaxTree:
        """Flatten a NodeSpec into a validated SyntaxTree."""
        kinds: list[NodeKind] = []
        attrs: list[dict[str, AttrValue]] = []
        roles: list[Role] = []
        children: list[list[int]] = []
        parents: list[int] = []
        positions: list[Position | None] = []

        stack: list[tuple[NodeSpec, int, Role]] = [(spec, NO_PARENT, Role.ROOT)]
        while stack:
            current, parent_id, role = stack.pop()
            node_id = len(kinds)
            kinds.append(current.kind)
            attrs.append(current.attrs)
            roles.append(role)
            children.append([])
            parents.append(parent_id)
            positions.append(current.position)
            if parent_id != NO_PARENT:
                children[parent_id].append(node_id)
            for child_role, child in reversed(current.children):
                stack.append((child, node_id, child_role))

        # Pre-order ids: a subtree is the contiguous range [id, last[id]].
        last = list(range(len(kinds)))
        for node_id in range(len(kinds) - 1, -1, -1):
            if children[node_id]:
                last[node_id] = last[children[node_id][-1]]

        spans = []
        for node_id, position in enumerate(positions):
            if position is None:
                spans.append(Span(path, node_id + 1, 1, last[node_id] + 1, 2))
            else:
                spans.append(Span(path, *position))
        return SyntaxTree(path, kinds, attrs, roles, children, parents, spans)

    # Expressions

    @staticmethod
    def ref(dotted: str) -> NodeSpec:
        """`a.b.c` becomes name(c, receiver=name(b, receiver=name(a)))."""
        head, *rest = dotted.split(".")
        spec = NodeSpec(NodeKind.NAME, {"name": head})
        for part in rest:
            spec = NodeSpec(NodeKind.NAME, {"name": part}, ((Role.RECEIVER, spec),))
        return spec

    @staticmethod
    def operand(value: Operand) -> NodeSpec:
        return TreeBuilder.ref(value) if isinstance(value, str) else value

    @staticmethod
    def literal(value: str | int | bool) -> NodeSpec:
        return NodeSpec(NodeKind.LITERAL, {"value": value})

    @staticmethod
    def call(
        callee: str,
        *arguments: Operand,
        receiver: Operand | None = None,
        lambda_: NodeSpec | None = None,
    ) -> NodeSpec:
        kids: list[tuple[Role, NodeSpec]] = []
        if receiver is not None:
            kids.append((Role.RECEIVER, TreeBuilder.operand(receiver)))
        kids.extend((Role.ARGUMENT, TreeBuilder.operand(a)) for a in arguments)
        if lambda_ is not None:
            kids.append((Role.LAMBDA, lambda_))
        return NodeSpec(NodeKind.CALL, {"callee": callee}, tuple(kids))

    @staticmethod
    def lam(*statements: NodeSpec, params: Iterable[NodeSpec] = ()) -> NodeSpec:
        kids = [(Role.PARAMETER, p) for p in params]
        kids.extend((Role.STATEMENT, s) for s in statements)
        return NodeSpec(NodeKind.LAMBDA, {}, tuple(kids))

    @staticmethod
    def binary(operator: str, left: Operand, right: Operand) -> NodeSpec:
        return NodeSpec(
            NodeKind.BINARY,
            {"operator": operator},
            ((Role.LEFT, TreeBuilder.operand(left)), (Role.RIGHT, TreeBuilder.operand(right))),
        )

    @staticmethod
    def assign(target: Operand, value: Operand) -> NodeSpec:
        return TreeBuilder.binary("=", target, value)

    # Declarations

    @staticmethod
    def file(*statements: NodeSpec) -> NodeSpec:
        return NodeSpec(NodeKind.FILE, {}, tuple((Role.STATEMENT, s) for s in statements))

    @staticmethod
    def function(
        name: str,
        *statements: NodeSpec,
        suspend: bool = False,
        params: Iterable[NodeSpec] = (),
        annotations: Iterable[str] = (),
        expression: NodeSpec | None = None,
    ) -> NodeSpec:
        """Block-bodied function, or expression-bodied when `expression` is given."""
        kids = [(Role.PARAMETER, p) for p in params]
        body = expression if expression is not None else TreeBuilder.block(*statements)
        kids.append((Role.BODY, body))
        return NodeSpec(
            NodeKind.FUNCTION,
            {"name": name, "is_suspend": suspend, "annotations": tuple(annotations)},
            tuple(kids),
        )

    @staticmethod
    def klass(
        name: str,
        *members: NodeSpec,
        supertypes: Iterable[str] = (),
        annotations: Iterable[str] = (),
        params: Iterable[NodeSpec] = (),
    ) -> NodeSpec:
        kids = [(Role.PARAMETER, p) for p in params]
        kids.extend((Role.MEMBER, m) for m in members)
        return NodeSpec(
            NodeKind.CLASS,
            {"name": name, "supertypes": tuple(supertypes), "annotations": tuple(annotations)},
            tuple(kids),
        )

    @staticmethod
    def param(
        name: str,
        default: Operand | None = None,
        annotations: Iterable[str] = (),
        type_name: str | None = None,
        is_property: bool = False,
    ) -> NodeSpec:
        kids = ((Role.INITIALIZER, TreeBuilder.operand(default)),) if default is not None else ()
        return NodeSpec(
            NodeKind.PARAMETER,
            {
                "name": name,
                "annotations": tuple(annotations),
                "type_name": type_name,
                "is_property": is_property,
            },
            kids,
        )

    @staticmethod
    def prop(
        name: str,
        initializer: Operand | None = None,
        annotations: Iterable[str] = (),
        type_name: str | None = None,
    ) -> NodeSpec:
        kids = ((Role.INITIALIZER, TreeBuilder.operand(initializer)),) if initializer is not None else ()
        return NodeSpec(
            NodeKind.PROPERTY,
            {"name": name, "annotations": tuple(annotations), "type_name": type_name},
            kids,
        )

    # Statements and control flow

    @staticmethod
    def block(*statements: NodeSpec) -> NodeSpec:
        return NodeSpec(NodeKind.BLOCK, {}, tuple((Role.STATEMENT, s) for s in statements))

    @staticmethod
    def catch(param_name: str, type_name: str, *statements: NodeSpec) -> NodeSpec:
        return NodeSpec(
            NodeKind.CATCH,
            {"param_name": param_name, "type_name": type_name},
            ((Role.BODY, TreeBuilder.block(*statements)),),
        )

    @staticmethod
    def try_(
        body: Iterable[NodeSpec],
        catches: Iterable[NodeSpec] = (),
        finally_: Iterable[NodeSpec] | None = None,
    ) -> NodeSpec:
        kids = [(Role.TRY, TreeBuilder.block(*body))]
        kids.extend((Role.CATCH, c) for c in catches)
        if finally_ is not None:
            kids.append((Role.FINALLY, TreeBuilder.block(*finally_)))
        return NodeSpec(NodeKind.TRY, {}, tuple(kids))

    @staticmethod
    def loop(
        *statements: NodeSpec,
        loop_kind: str = "for",
        variable: str | None = None,
        iterable: Operand | None = None,
    ) -> NodeSpec:
        """`for` loops take an iterable; `while`/`do_while` loops take their condition as iterable."""
        kids: list[tuple[Role, NodeSpec]] = []
        if iterable is not None:
            kids.append((Role.ITERABLE, TreeBuilder.operand(iterable)))
        kids.append((Role.BODY, TreeBuilder.block(*statements)))
        return NodeSpec(NodeKind.LOOP, {"loop_kind": loop_kind, "variable": variable}, tuple(kids))

    @staticmethod
    def if_(
        condition: Operand,
        then: Iterable[NodeSpec],
        else_: Iterable[NodeSpec] | None = None,
    ) -> NodeSpec:
        kids = [
            (Role.CONDITION, TreeBuilder.operand(condition)),
            (Role.THEN, TreeBuilder.block(*then)),
        ]
        if else_ is not None:
            kids.append((Role.ELSE, TreeBuilder.block(*else_)))
        return NodeSpec(NodeKind.IF, {}, tuple(kids))

    @staticmethod
    def throw(expression: Operand) -> NodeSpec:
        return NodeSpec(NodeKind.THROW, {}, ((Role.EXPRESSION, TreeBuilder.operand(expression)),))

    @staticmethod
    def ret(expression: Operand | None = None) -> NodeSpec:
        kids = ((Role.EXPRESSION, TreeBuilder.operand(expression)),) if expression is not None else ()
        return NodeSpec(NodeKind.RETURN, {}, kids)

    @staticmethod
    def other(*children: NodeSpec, **attrs: AttrValue) -> NodeSpec:
        return NodeSpec(NodeKind.OTHER, dict(attrs), tuple((Role.EXPRESSION, c) for c in children))
