"""
External agents that modify repository files.
"""

from issuebot.agents.patch_agent import CLIPatchAgent, PatchAgent, PatchResult

__all__ = ["CLIPatchAgent", "PatchAgent", "PatchResult"]
