"""Canonical runtime entrypoint for the textforensics HTTP API."""

from __future__ import annotations

import sys
from typing import Any

APP_FACTORY = "textforensics.api.app:create_app"


def serve(
    *,
    host: str = "0.0.0.0",
    port: int = 8000,
    log_level: str = "info",
    reload: bool = False,
    workers: int | None = None,
    timeout_keep_alive: int | None = None,
    dry_run: bool = False,
    **extra: Any,
) -> int:
    """Start the HTTP API server.

    The application is built through its factory so that every worker
    process detects capabilities and loads configuration on its own.

    Args:
        dry_run: Build the application once and return without serving.

    Returns:
        Process exit code.
    """
    if dry_run:
        from textforensics.api.app import create_app

        create_app()
        return 0

    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn", file=sys.stderr)
        return 1

    uvicorn_kwargs: dict[str, Any] = {
        "host": host,
        "port": port,
        "log_level": log_level,
        "reload": reload,
        "factory": True,
    }
    if workers is not None:
        uvicorn_kwargs["workers"] = workers
    if timeout_keep_alive is not None:
        uvicorn_kwargs["timeout_keep_alive"] = timeout_keep_alive
    uvicorn_kwargs.update(extra)

    uvicorn.run(APP_FACTORY, **uvicorn_kwargs)
    return 0


__all__ = ["APP_FACTORY", "serve"]
