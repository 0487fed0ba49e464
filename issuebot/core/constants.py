"""
System-wide constants for issuebot.
"""

from enum import Enum


# =============================================================================
# Enums
# =============================================================================


class Command(str, Enum):
    """Verbs the bot responds to after an @mention."""

    NEED_PRD = "need_prd"
    NEED_SUB_TASK = "need_sub_task"
    IMPLEMENT_FEATURE = "implement_feature"


class WorkflowStatus(str, Enum):
    """Workflow execution outcomes."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class FeatureStage(str, Enum):
    """States of the feature implementation workflow, in order."""

    PARSED = "parsed"
    ACKNOWLEDGED = "acknowledged"
    WORKSPACE_READY = "workspace_ready"
    CLONED = "cloned"
    BRANCHED = "branched"
    PATCHED = "patched"
    COMMITTED = "committed"
    PUSHED = "pushed"
    PULL_REQUEST_OPENED = "pull_request_opened"
    FAILED = "failed"


# =============================================================================
# API Constants
# =============================================================================

API_VERSION = "v1"
API_PREFIX = f"/api/{API_VERSION}"

# GitHub webhook headers
EVENT_HEADER = "X-GitHub-Event"
SIGNATURE_HEADER = "X-Hub-Signature-256"
DELIVERY_HEADER = "X-GitHub-Delivery"

GITHUB_API_VERSION = "2022-11-28"
COMMENTS_PAGE_SIZE = 100

# =============================================================================
# Artifact Markers
# =============================================================================

# Identity of a PRD comment; must stay byte-for-byte stable
PRD_MARKER = "### PRD (Product Requirements Document)"
PRD_SECTION_RULE = "\n\n---\n\n"
PRD_TRANSLATED_HEADER = "### PRD ({language})"

SUBTASKS_HEADER = "### Generated Sub-tasks"
SUBTASKS_INTRO = "Based on the PRD, here are the suggested sub-tasks:"

LANGUAGE_FALLBACK = "the original language of the issue"

README_PATH = "README.md"

# =============================================================================
# Feature Workflow Constants
# =============================================================================

FILES_PREFIX = "Files:"
BRANCH_TEMPLATE = "feature/issue-{issue_number}-{timestamp}"
WORKSPACE_PREFIX = "repo-{issue_number}-"

# Maximum characters of process output quoted back in a failure comment
MAX_OUTPUT_IN_COMMENT = 3000
