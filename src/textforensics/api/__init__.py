"""
textforensics API module.

Exports:
    - create_app: FastAPI application factory
    - health: Health check endpoints
"""

from textforensics.api import health
from textforensics.api.app import create_app

__all__ = ["create_app", "health"]
