"""
API v1 routers.
"""

from issuebot.api.v1 import health, webhook

__all__ = ["health", "webhook"]
