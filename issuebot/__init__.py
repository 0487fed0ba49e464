"""
issuebot: a GitHub App that writes PRDs, sub-task checklists and feature
pull requests for issues.
"""

__version__ = "1.0.0"
