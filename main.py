"""Main entry point for the server."""

import logging
import os

import uvicorn

from config import settings

APP_PORT = int(os.getenv("APP_PORT", "8000"))
APP_WORKERS = int(os.getenv("APP_WORKERS", "4"))


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    uvicorn.run(
        "webvh.server:app",
        host="0.0.0.0",
        port=APP_PORT,
        workers=APP_WORKERS,
        log_level=settings.LOG_LEVEL.lower(),
        reload=False,
    )
