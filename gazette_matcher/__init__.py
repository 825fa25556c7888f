"""
Client for the gazette and registry name-matching service.
"""

from .client import MatcherClient
from .config import Settings, get_settings
from .session import MatcherSession

__all__ = ["MatcherClient", "MatcherSession", "Settings", "get_settings"]
