"""
Workflow implementations.
"""

from issuebot.orchestration.workflows.feature_workflow import FeatureWorkflow
from issuebot.orchestration.workflows.prd_workflow import PRDWorkflow
from issuebot.orchestration.workflows.subtask_workflow import SubtaskWorkflow

__all__ = ["PRDWorkflow", "SubtaskWorkflow", "FeatureWorkflow"]
