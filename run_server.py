#!/usr/bin/env python3
"""
Server launcher for the Vision Proxy API.

Reads host, port and worker count from the same settings the app uses
(YAML file named by VISION_PROXY_CONFIG, then environment variables).
Each worker is an independent process; no state is shared between them.
"""

import logging
import uvicorn

from visionproxy.config.settings import load_settings
from visionproxy.utils.logging_config import configure_logging

logger = logging.getLogger("run_server")

if __name__ == "__main__":
    settings = load_settings()
    configure_logging(settings.log_level)

    logger.info("Starting Vision Proxy API on http://%s:%s", settings.host, settings.port)
    logger.info("API documentation at: http://localhost:%s/docs", settings.port)
    logger.info("Health check at: http://localhost:%s/health", settings.port)

    uvicorn.run(
        "visionproxy.api.main:app",
        host=settings.host,
        port=settings.port,
        workers=settings.workers,
        reload=settings.is_development and settings.workers == 1,
        log_level=settings.log_level.lower(),
    )
