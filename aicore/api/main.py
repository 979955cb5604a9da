"""
HTTP server entrypoint.

Architectural role:
- Load settings from the environment.
- Configure logging once for the process.
- Serve the FastAPI app built by `create_app` with uvicorn.

Lifecycle:
- Snapshot load and timer start run in the app lifespan before the first
  request; the final snapshot is written when uvicorn shuts down.
"""

import logging

import uvicorn

from aicore.api.http_api import create_app
from aicore.core.config import load_settings
from aicore.core.context import AppContext
from aicore.core.logging_config import setup_logging


logger = logging.getLogger(__name__)


def main():
    settings = load_settings()
    setup_logging(settings.log_level)

    context = AppContext.create(settings)
    app = create_app(context)

    logger.info("AI Core API listening on http://%s", settings.address)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
