"""Logging setup shared by the API server and scripts."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class HealthCheckFilter(logging.Filter):
    """Drop uvicorn access-log lines for successful health checks."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if '"GET /health' in message and '200' in message:
            return False
        return True


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure root logging once and return the application logger."""
    resolved = getattr(logging, (level or "INFO").upper(), logging.INFO)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger().setLevel(resolved)

    access_logger = logging.getLogger("uvicorn.access")
    if not any(isinstance(f, HealthCheckFilter) for f in access_logger.filters):
        access_logger.addFilter(HealthCheckFilter())

    # The socket.io libraries are chatty at INFO
    logging.getLogger("socketio").setLevel(logging.WARNING)
    logging.getLogger("engineio").setLevel(logging.WARNING)

    return logging.getLogger("tavern")
