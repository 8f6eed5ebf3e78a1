"""
CLI Interface - Command-line tools for TicketHub search.

Provides commands for:
- Search queries
- Index rebuilds
- Database initialization
- Serving the API
"""

from .main import app, main

__all__ = ["app", "main"]
