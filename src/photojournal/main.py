"""
Entry point for the photojournal server.

Loads .env, configures logging and runs the FastAPI app under uvicorn.
"""

import argparse

import uvicorn
from dotenv import load_dotenv

from .api import create_app
from .config import AppConfig
from .logging_config import configure_structured_logging, get_logger


def main(argv: list[str] | None = None) -> None:
    """Run the server."""
    parser = argparse.ArgumentParser(description="Photo journal content server")
    parser.add_argument("--env-file", default=".env", help="Environment file to load")
    args = parser.parse_args(argv)

    load_dotenv(dotenv_path=args.env_file)

    config = AppConfig.from_env()
    configure_structured_logging(config.log_level, production=config.production)
    logger = get_logger(__name__)

    app = create_app(config)
    logger.info(
        "server_starting",
        mode="production" if config.production else "development",
        url=f"http://localhost:{config.port}",
        admin_url=f"http://localhost:{config.port}/admin.html",
        content_root=str(config.content_root),
    )

    try:
        uvicorn.run(app, host=config.host, port=config.port, log_config=None)
    except OSError as e:
        logger.error("server_start_failed", port=config.port, error=str(e))
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
