"""Launch the relay under uvicorn."""
from __future__ import annotations
import logging

import uvicorn

from skribbl_relay.common.config import load_settings
from skribbl_relay.common.logging_setup import setup_logging
from skribbl_relay.serve.fastapi_app import create_app

LOGGER = logging.getLogger("skribbl_relay.serve.server")

def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level)
    app = create_app(settings)
    LOGGER.info("Server running on http://%s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)

if __name__ == "__main__":
    main()
