"""Package entry point - composition root. Wire dependencies and run the CLI app."""

from spec_style_linter.infrastructure.di.container import SpecStyleContainer
from spec_style_linter.interface.cli import CLIDependencies, create_app


def main() -> None:
    """Entry point: wire dependencies at composition root, create app, run."""
    container = SpecStyleContainer()

    deps = CLIDependencies(
        telemetry=container.get_telemetry_port(),
        filesystem=container.get_filesystem_gateway(),
        config_source=container.get_config_source(),
        guidance_service=container.get_guidance_service(),
        catalog=container.get_rule_catalog(),
        parser_factory=container.create_parser,
        text_reporter=container.get_text_reporter(),
        json_reporter=container.get_json_reporter(),
    )

    app = create_app(deps)
    app()


if __name__ == "__main__":
    main()
