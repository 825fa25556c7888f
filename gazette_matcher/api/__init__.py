"""
HTTP surface for the matcher session.
"""

from .routes import router, view_router

__all__ = ["router", "view_router"]
