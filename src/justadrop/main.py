"""Application entry point for the Just a Drop API server."""

from justadrop.app import App
from justadrop.config import Config
from justadrop.logging import setup_logging
from justadrop.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
