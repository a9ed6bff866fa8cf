# src/augcurve/api/__main__.py
from __future__ import annotations

import logging
import os

import uvicorn

from augcurve.env import load_dotenv_if_present
from augcurve.runtime.event_log import log_event


def main() -> None:
    # AUGCURVE_* settings from .env must be in place before any config is read
    loaded = load_dotenv_if_present()

    from augcurve.api.app import create_app
    from augcurve.api.structured_logging import configure_structured_logging

    configure_structured_logging()
    log_event(logging.getLogger("augcurve.api"), "dotenv_loaded", keys=loaded)

    host = os.getenv("AUGCURVE_API_HOST", "127.0.0.1")
    port = int(os.getenv("AUGCURVE_API_PORT", "8080"))

    uvicorn.run(create_app(), host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
