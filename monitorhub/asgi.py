"""ASGI application factory for uvicorn.

Usage:
    uvicorn monitorhub.asgi:create_app_from_env --factory
"""

import os

from monitorhub.app import CONFIG_PATH_ENV, create_app
from monitorhub.composition import create_container
from monitorhub.logging_setup import setup_logging_from_env


def create_app_from_env():
    """Create FastAPI app from environment variables.

    Environment variables:
        MONITORHUB_CONFIG_PATH: Path to config file (default: config.yaml)
        MONITORHUB_LOG_LEVEL: Log level (default: INFO)
    """
    setup_logging_from_env()
    container = create_container(config_path=os.environ.get(CONFIG_PATH_ENV, "config.yaml"))
    return create_app(container)
