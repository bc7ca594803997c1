"""Package entry point - composition root. Wire dependencies and run the CLI app."""

from corolint.domain.config import ConfigurationLoader
from corolint.domain.rules.catalog import RuleCatalog
from corolint.infrastructure.config_file_loader import ConfigFileLoader
from corolint.infrastructure.gateways.tree_document_gateway import TreeDocumentGateway
from corolint.infrastructure.services.guidance_service import GuidanceService
from corolint.interface.cli import CLIAppFactory, CLIDependencies


def main() -> None:
    """Entry point: wire dependencies at composition root, create app, run."""
    CLIAppFactory.configure_logging()
    config_dict = ConfigFileLoader.load_config_from_fs()

    deps = CLIDependencies(
        config_loader=ConfigurationLoader(config_dict),
        tree_loader=TreeDocumentGateway(),
        guidance_service=GuidanceService(),
        catalog=RuleCatalog(),
    )

    app = CLIAppFactory.create_app(deps)
    app()


if __name__ == "__main__":
    main()
