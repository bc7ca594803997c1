"""Gateway: load serialized syntax-tree documents (.json, .yaml, .yml) into SyntaxTree arenas."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from corolint.domain.builders import NodeSpec, TreeBuilder
from corolint.domain.errors import EngineError
from corolint.domain.protocols import TreeLoaderProtocol
from corolint.domain.syntax import AttrValue, NodeKind, Role, SyntaxTree

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES: tuple[str, ...] = (".json", ".yaml", ".yml")

# Child slots in the order children are attached. Plural slots hold lists.
SINGLE_SLOTS: dict[str, Role] = {
    "receiver": Role.RECEIVER,
    "lambda": Role.LAMBDA,
    "initializer": Role.INITIALIZER,
    "condition": Role.CONDITION,
    "iterable": Role.ITERABLE,
    "then": Role.THEN,
    "else": Role.ELSE,
    "try": Role.TRY,
    "finally": Role.FINALLY,
    "left": Role.LEFT,
    "right": Role.RIGHT,
    "body": Role.BODY,
}
LIST_SLOTS: dict[str, Role] = {
    "parameters": Role.PARAMETER,
    "arguments": Role.ARGUMENT,
    "catches": Role.CATCH,
    "statements": Role.STATEMENT,
    "members": Role.MEMBER,
    "expression": Role.EXPRESSION,
}
SLOT_ORDER: tuple[str, ...] = (
    "receiver",
    "parameters",
    "arguments",
    "lambda",
    "initializer",
    "condition",
    "iterable",
    "then",
    "else",
    "try",
    "catches",
    "finally",
    "left",
    "right",
    "body",
    "statements",
    "members",
    "expression",
)
RESERVED_KEYS: frozenset[str] = frozenset({"kind", "span", *SLOT_ORDER})


@dataclass
class _OpenNode:
    """A node mapping whose child slots are still being converted."""

    kind: NodeKind
    attrs: dict[str, AttrValue]
    role: Role
    span: tuple[int, int, int, int] | None
    pending: list[tuple[Role, object, str]]
    children: list[tuple[Role, NodeSpec]] = field(default_factory=list)


class TreeDocumentGateway(TreeLoaderProtocol):
    """
    Reads one compilation unit per document.

    A document is either a node mapping (the `file` root) or a mapping with
    `path` (the source file the tree describes) and `root`. Node mappings carry
    `kind`, an optional `span` of [startLine, startCol, endLine, endCol], scalar
    attributes, and child slots. PyYAML parses both YAML and JSON documents.
    """

    def discover(self, paths: list[str]) -> list[str]:
        """Expand directories into the documents they contain. Missing paths are kept so loading reports them."""
        units: list[str] = []
        for raw in paths:
            path = Path(raw)
            if path.is_dir():
                found = sorted(
                    p for p in path.rglob("*") if p.is_file() and p.suffix.lower() in DOCUMENT_SUFFIXES
                )
                if not found:
                    logger.info("No tree documents under %s", path)
                units.extend(str(p) for p in found)
            else:
                units.append(str(path))
        return units

    def load(self, path: str) -> SyntaxTree:
        try:
            text = Path(path).read_text(encoding="utf-8")
            data = yaml.safe_load(text)
        except (OSError, UnicodeDecodeError) as exc:
            raise EngineError(f"cannot read tree document: {exc}", unit=path) from exc
        except yaml.YAMLError as exc:
            raise EngineError(f"cannot parse tree document: {exc}", unit=path) from exc
        except RecursionError as exc:
            raise EngineError("tree document is nested too deeply to parse", unit=path) from exc
        return self.from_document(data, default_path=path)

    def from_document(self, data: object, default_path: str) -> SyntaxTree:
        """Build a tree from an already-parsed document."""
        if not isinstance(data, Mapping):
            raise EngineError("tree document must be a mapping", unit=default_path)
        if "root" in data:
            unit = str(data.get("path") or default_path)
            root = data["root"]
        else:
            unit = default_path
            root = data
        try:
            spec = self._node(root, "root")
            return TreeBuilder.build(spec, unit)
        except EngineError as exc:
            if exc.unit:
                raise
            raise exc.for_unit(unit) from exc

    def _node(self, data: object, where: str) -> NodeSpec:
        """Convert a node mapping and its subtree without recursing, so deep receiver chains load."""
        stack = [self._open(data, where, Role.ROOT)]
        while True:
            frame = stack[-1]
            if frame.pending:
                role, child, child_where = frame.pending.pop()
                stack.append(self._open(child, child_where, role))
                continue
            stack.pop()
            spec = NodeSpec(frame.kind, frame.attrs, tuple(frame.children))
            if frame.span is not None:
                spec = spec.at(*frame.span)
            if not stack:
                return spec
            stack[-1].children.append((frame.role, spec))

    def _open(self, data: object, where: str, role: Role) -> _OpenNode:
        if not isinstance(data, Mapping):
            raise EngineError(f"{where}: node must be a mapping, got {type(data).__name__}")
        raw_kind = data.get("kind")
        try:
            kind = NodeKind(raw_kind)
        except ValueError:
            raise EngineError(f"{where}: unknown node kind {raw_kind!r}") from None

        attrs: dict[str, AttrValue] = {}
        for key, value in data.items():
            if key in RESERVED_KEYS:
                continue
            attrs[str(key)] = self._attr(value, f"{where}.{key}")

        slots: list[tuple[Role, object, str]] = []
        for slot in SLOT_ORDER:
            if slot not in data or data[slot] is None:
                continue
            value = data[slot]
            if slot in LIST_SLOTS:
                items = value if isinstance(value, list) else [value]
                slots.extend((LIST_SLOTS[slot], item, f"{where}.{slot}[{i}]") for i, item in enumerate(items))
            else:
                slots.append((SINGLE_SLOTS[slot], value, f"{where}.{slot}"))

        span = self._span(data["span"], where) if "span" in data else None
        # Popped from the end, so children attach in slot order.
        return _OpenNode(kind, attrs, role, span, pending=slots[::-1])

    @staticmethod
    def _attr(value: object, where: str) -> AttrValue:
        if value is None or isinstance(value, (str, bool, int)):
            return value
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            return tuple(value)
        raise EngineError(f"{where}: attribute must be a scalar or a list of strings")

    @staticmethod
    def _span(value: object, where: str) -> tuple[int, int, int, int]:
        if (
            not isinstance(value, list)
            or len(value) != 4
            or not all(isinstance(v, int) and not isinstance(v, bool) for v in value)
        ):
            raise EngineError(f"{where}: span must be [startLine, startCol, endLine, endCol]")
        start_line, start_col, end_line, end_col = value
        return start_line, start_col, end_line, end_col
