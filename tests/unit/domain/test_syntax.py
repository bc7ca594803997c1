"""Unit tests for the arena syntax tree, its validation and the TreeBuilder."""

import unittest

from corolint.domain.builders import NodeSpec, TreeBuilder as T
from corolint.domain.errors import EngineError
from corolint.domain.syntax import NO_PARENT, NodeKind, Role, Span, SyntaxTree


class TestTreeBuilder(unittest.TestCase):
    """Flattening NodeSpec values into arenas."""

    def setUp(self) -> None:
        self.tree = T.build(
            T.file(
                T.function(
                    "load",
                    T.call("launch", receiver="viewModelScope", lambda_=T.lam(T.call("fetch"))),
                    suspend=True,
                )
            ),
            "src/Load.kt",
        )

    def test_ids_are_pre_order(self) -> None:
        """iter_nodes yields ids 0..n-1 in order."""
        ids = [n.id for n in self.tree.iter_nodes()]
        self.assertEqual(ids, list(range(len(self.tree))))

    def test_root_is_file(self) -> None:
        root = self.tree.root
        self.assertIs(root.kind, NodeKind.FILE)
        self.assertIs(root.role, Role.ROOT)
        self.assertIsNone(root.parent)

    def test_call_accessors(self) -> None:
        """receiver, arguments and trailing lambda are exposed by role."""
        launch = next(n for n in self.tree.iter_nodes() if n.callee == "launch")
        self.assertEqual(launch.receiver.text, "viewModelScope")
        self.assertEqual(launch.arguments, ())
        self.assertIs(launch.trailing_lambda.kind, NodeKind.LAMBDA)
        self.assertEqual(launch.text, "viewModelScope.launch() { }")

    def test_function_statements_unwrap_body(self) -> None:
        function = next(n for n in self.tree.iter_nodes() if n.kind is NodeKind.FUNCTION)
        self.assertEqual([s.callee for s in function.statements], ["launch"])

    def test_ancestors_nearest_first(self) -> None:
        fetch = next(n for n in self.tree.iter_nodes() if n.callee == "fetch")
        kinds = [a.kind for a in fetch.ancestors()]
        self.assertEqual(
            kinds,
            [NodeKind.LAMBDA, NodeKind.CALL, NodeKind.BLOCK, NodeKind.FUNCTION, NodeKind.FILE],
        )
        self.assertTrue(fetch.is_descendant_of(self.tree.root))

    def test_synthetic_spans_nest(self) -> None:
        """A node's synthetic span contains the spans of its descendants."""
        for node in self.tree.iter_nodes():
            for descendant in node.descendants():
                self.assertTrue(node.span.contains(descendant.span), f"{node} does not contain {descendant}")

    def test_explicit_position_is_kept(self) -> None:
        tree = T.build(T.file(T.call("work").at(3, 5, 3, 11)), "a.kt")
        call = tree.node(1)
        self.assertEqual(call.span, Span("a.kt", 3, 5, 3, 11))
        self.assertEqual(str(call.span), "a.kt:3:5")

    def test_dotted_reference(self) -> None:
        """`Dispatchers.Main.immediate` is a chain of names linked through receivers."""
        tree = T.build(T.file(T.ref("Dispatchers.Main.immediate")), "a.kt")
        name = tree.root.statements[0]
        self.assertEqual(name.name, "immediate")
        self.assertEqual(name.receiver.name, "Main")
        self.assertEqual(name.text, "Dispatchers.Main.immediate")

    def test_single_segment_reference(self) -> None:
        name = T.build(T.file(T.ref("scope")), "a.kt").root.statements[0]
        self.assertEqual(name.name, "scope")
        self.assertIsNone(name.receiver)

    def test_text_of_long_receiver_chain(self) -> None:
        chain = T.call("launch", receiver=T.ref(".".join(["a"] * 3000)))
        launch = T.build(T.file(chain), "a.kt").root.statements[0]
        self.assertEqual(launch.text, ".".join(["a"] * 3000) + ".launch()")

    def test_try_with_finally_roles(self) -> None:
        tree = T.build(
            T.file(T.try_([T.call("a")], catches=[T.catch("e", "IOException")], finally_=[T.call("b")])),
            "a.kt",
        )
        try_node = tree.root.statements[0]
        self.assertEqual([c.role for c in try_node.children], [Role.TRY, Role.CATCH, Role.FINALLY])
        self.assertEqual(try_node.child(Role.FINALLY).statements[0].callee, "b")

    def test_binary_text(self) -> None:
        tree = T.build(T.file(T.binary("+", "Dispatchers.IO", T.call("SupervisorJob"))), "a.kt")
        self.assertEqual(tree.root.statements[0].text, "Dispatchers.IO + SupervisorJob()")


class TestSyntaxTreeValidation(unittest.TestCase):
    """Malformed arenas raise EngineError bound to the unit."""

    def _span(self) -> Span:
        return Span("bad.kt", 1, 1, 1, 2)

    def test_missing_required_callee(self) -> None:
        with self.assertRaises(EngineError) as ctx:
            T.build(T.file(NodeSpec(NodeKind.CALL, {})), "bad.kt")
        self.assertEqual(ctx.exception.unit, "bad.kt")
        self.assertIn("callee", str(ctx.exception))

    def test_empty_tree(self) -> None:
        with self.assertRaises(EngineError):
            SyntaxTree("bad.kt", [], [], [], [], [], [])

    def test_column_length_mismatch(self) -> None:
        with self.assertRaises(EngineError):
            SyntaxTree("bad.kt", [NodeKind.FILE], [{}], [Role.ROOT], [()], [NO_PARENT, 0], [self._span()])

    def test_two_roots(self) -> None:
        with self.assertRaises(EngineError):
            SyntaxTree(
                "bad.kt",
                [NodeKind.FILE, NodeKind.FILE],
                [{}, {}],
                [Role.ROOT, Role.ROOT],
                [(), ()],
                [NO_PARENT, NO_PARENT],
                [self._span(), self._span()],
            )

    def test_unknown_kind(self) -> None:
        with self.assertRaises(EngineError):
            SyntaxTree("bad.kt", ["module"], [{}], [Role.ROOT], [()], [NO_PARENT], [self._span()])

    def test_inconsistent_parent_link(self) -> None:
        """Child lists and parent ids must agree."""
        with self.assertRaises(EngineError):
            SyntaxTree(
                "bad.kt",
                [NodeKind.FILE, NodeKind.BLOCK, NodeKind.BLOCK],
                [{}, {}, {}],
                [Role.ROOT, Role.STATEMENT, Role.STATEMENT],
                [(1,), (2,), (1,)],
                [NO_PARENT, 2, 1],
                [self._span()] * 3,
            )

    def test_detached_node(self) -> None:
        """A node whose parent chain never reaches the root is rejected."""
        with self.assertRaises(EngineError):
            SyntaxTree(
                "bad.kt",
                [NodeKind.FILE, NodeKind.BLOCK, NodeKind.BLOCK],
                [{}, {}, {}],
                [Role.ROOT, Role.STATEMENT, Role.STATEMENT],
                [(), (2,), (1,)],
                [NO_PARENT, 2, 1],
                [self._span()] * 3,
            )

    def test_child_out_of_range(self) -> None:
        with self.assertRaises(EngineError):
            SyntaxTree("bad.kt", [NodeKind.FILE], [{}], [Role.ROOT], [(5,)], [NO_PARENT], [self._span()])

    def test_node_lookup_out_of_range(self) -> None:
        tree = T.build(T.file(), "a.kt")
        with self.assertRaises(EngineError):
            tree.node(10)


if __name__ == "__main__":
    unittest.main()
