#!/usr/bin/env python3
"""
Uvicorn runner script for the Tavern application.
Starts the Socket.IO-wrapped FastAPI server so HTTP and real-time session
events share one port.
"""

import sys
from pathlib import Path

import uvicorn


def main():
    """Start the Socket.IO-wrapped FastAPI application with uvicorn."""
    backend_root = Path(__file__).parent
    project_root = backend_root.parent   # where the auth and db packages live
    src_dir = backend_root / "src"

    # Allow running from a checkout without `pip install -e .`
    for path in (project_root, src_dir):
        if str(path) not in sys.path:
            sys.path.insert(0, str(path))

    from tavern.config.settings import get_settings

    settings = get_settings()
    print(f"Starting {settings.service_name} on port {settings.port} ({settings.environment})")

    uvicorn.run(
        "tavern.api.app:socket_app",
        host="0.0.0.0",
        port=settings.port,
        reload=not settings.is_production,
        reload_dirs=[str(src_dir)],
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
