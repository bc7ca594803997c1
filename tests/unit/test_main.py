"""Unit tests for the composition root."""

from unittest.mock import MagicMock, patch

from corolint.__main__ import main
from corolint.domain.rules.catalog import RuleCatalog
from corolint.infrastructure.gateways.tree_document_gateway import TreeDocumentGateway
from corolint.infrastructure.services.guidance_service import GuidanceService


class TestMain:
    def test_wires_dependencies_and_runs_app(self) -> None:
        app = MagicMock()
        with (
            patch(
                "corolint.__main__.ConfigFileLoader.load_config_from_fs",
                return_value={"workers": 3},
            ),
            patch("corolint.__main__.CLIAppFactory.configure_logging"),
            patch("corolint.__main__.CLIAppFactory.create_app", return_value=app) as create_app,
        ):
            main()

        deps = create_app.call_args.args[0]
        assert deps.config_loader.workers == 3
        assert isinstance(deps.tree_loader, TreeDocumentGateway)
        assert isinstance(deps.guidance_service, GuidanceService)
        assert isinstance(deps.catalog, RuleCatalog)
        app.assert_called_once_with()
