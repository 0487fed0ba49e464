"""
GitHub App authentication and REST gateway.
"""

from issuebot.github.auth import InstallationAuthenticator, InstallationToken
from issuebot.github.base import IssueTrackerGateway
from issuebot.github.client import GitHubClient, GitHubGatewayFactory

__all__ = [
    "GitHubClient",
    "GitHubGatewayFactory",
    "InstallationAuthenticator",
    "InstallationToken",
    "IssueTrackerGateway",
]
