"""Unit tests for RuleCatalog."""

from corolint.domain.config import EngineConfig
from corolint.domain.constants import DOC_BASE_URL
from corolint.domain.entities import Severity
from corolint.domain.rules.catalog import RULE_TYPES, RuleCatalog


class TestRuleCatalog:
    """Catalog contents and lookups."""

    def test_ships_every_rule_once(self) -> None:
        catalog = RuleCatalog()
        assert len(catalog) == len(RULE_TYPES) == 23
        assert len({r.code for r in catalog.rules}) == 23
        assert len({r.symbol for r in catalog.rules}) == 23

    def test_rule_metadata_is_complete(self) -> None:
        for rule in RuleCatalog().rules:
            assert rule.code and rule.symbol and rule.description
            assert rule.severity in (Severity.ERROR, Severity.WARNING)
            assert rule.doc_url.startswith(DOC_BASE_URL + "#")

    def test_get_by_code_symbol_and_lowercase_code(self) -> None:
        catalog = RuleCatalog()
        assert catalog.get("SCOPE_001").symbol == "Unscoped-launch"
        assert catalog.get("Unscoped-launch").code == "SCOPE_001"
        assert catalog.get("cancel_005").symbol == "Scope-relaunch-after-cancel"
        assert catalog.get("NOPE_999") is None

    def test_enabled_honours_code_and_symbol(self) -> None:
        catalog = RuleCatalog()
        config = EngineConfig(disabled=frozenset({"SCOPE_001", "Channel-not-closed"}))
        enabled = {r.code for r in catalog.enabled(config)}
        assert "SCOPE_001" not in enabled
        assert "CHANNEL_001" not in enabled
        assert len(enabled) == 21

    def test_rules_property_is_a_copy(self) -> None:
        catalog = RuleCatalog()
        catalog.rules.clear()
        assert len(catalog) == 23
