"""
Text generation backends and prompt builders.
"""

from issuebot.generation.base import ContentGenerator
from issuebot.generation.gemini_client import GeminiContentGenerator

__all__ = ["ContentGenerator", "GeminiContentGenerator"]
