"""
Dispatcher: routes triggers to workflows and runs them in the background.
"""

import asyncio
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Protocol

from issuebot.core.constants import Command
from issuebot.core.logging import LogContext, get_logger
from issuebot.domain.trigger import BaseTrigger, Trigger
from issuebot.github.base import IssueTrackerGateway
from issuebot.orchestration.router import CommandRouter
from issuebot.orchestration.workflow_engine import BaseWorkflow, WorkflowContext, WorkflowResult

logger = get_logger(__name__)


class GatewayFactory(Protocol):
    """Builds an issue tracker gateway scoped to one trigger."""

    async def for_trigger(self, trigger: BaseTrigger) -> IssueTrackerGateway: ...


@dataclass
class _IssueSlot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class Dispatcher:
    """
    Runs one background task per accepted trigger.

    At most ``max_concurrent_tasks`` workflows execute at once, and runs for
    the same issue execute one after another in arrival order.
    """

    def __init__(
        self,
        router: CommandRouter,
        gateway_factory: GatewayFactory,
        workflows: Iterable[BaseWorkflow],
        max_concurrent_tasks: int = 4,
    ) -> None:
        registry: dict[Command, BaseWorkflow] = {}
        for workflow in workflows:
            if workflow.command in registry:
                raise ValueError(f"Duplicate workflow for command '{workflow.command.value}'")
            registry[workflow.command] = workflow

        self.router = router
        self.gateway_factory = gateway_factory
        self._registry = MappingProxyType(registry)
        self._semaphore = asyncio.Semaphore(max_concurrent_tasks)
        self._issue_slots: dict[str, _IssueSlot] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def registry(self) -> Mapping[Command, BaseWorkflow]:
        """Read-only command to workflow mapping."""
        return self._registry

    @property
    def active_count(self) -> int:
        """Number of scheduled or running tasks."""
        return len(self._tasks)

    def resolve(self, trigger: Trigger) -> Optional[BaseWorkflow]:
        """Workflow that handles ``trigger``, or None."""
        command = self.router.parse(trigger)
        if command is None:
            return None
        return self._registry.get(command)

    def dispatch(self, trigger: Trigger) -> Optional[asyncio.Task]:
        """
        Schedule the workflow for ``trigger`` and return without waiting.

        Returns:
            The background task, or None if the trigger names no known command
        """
        workflow = self.resolve(trigger)
        if workflow is None:
            logger.info(
                "No command recognized, ignoring trigger",
                issue=trigger.issue_key,
                trigger=type(trigger).__name__,
            )
            return None

        logger.info("Dispatching command", issue=trigger.issue_key, command=workflow.workflow_type)
        task = asyncio.create_task(
            self._run(workflow, trigger),
            name=f"{workflow.workflow_type}:{trigger.issue_key}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, workflow: BaseWorkflow, trigger: Trigger) -> Optional[WorkflowResult]:
        key = trigger.issue_key
        slot = self._issue_slots.setdefault(key, _IssueSlot())
        slot.users += 1
        try:
            async with slot.lock:
                async with self._semaphore:
                    return await self._execute(workflow, trigger)
        finally:
            slot.users -= 1
            if slot.users == 0:
                self._issue_slots.pop(key, None)

    async def _execute(self, workflow: BaseWorkflow, trigger: Trigger) -> Optional[WorkflowResult]:
        with LogContext(
            issue=trigger.issue_key,
            command=workflow.workflow_type,
            repository=trigger.repository.full_name,
        ):
            try:
                gateway = await self.gateway_factory.for_trigger(trigger)
            except Exception as e:
                logger.error("Could not open a tracker session, dropping trigger", error=str(e))
                return None

            try:
                async with gateway:
                    result = await workflow.execute(WorkflowContext(trigger=trigger, gateway=gateway))
            except Exception:
                logger.exception("Workflow raised an unhandled error")
                return None

            logger.info(
                "Workflow finished",
                workflow_id=result.workflow_id,
                status=result.status.value,
                stage=result.stage,
            )
            return result

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight tasks; cancel whatever is left after ``timeout``."""
        if not self._tasks:
            return

        pending = set(self._tasks)
        logger.info("Waiting for running workflows", count=len(pending))
        _, still_running = await asyncio.wait(pending, timeout=timeout)

        if still_running:
            logger.warning("Cancelling workflows that did not finish in time", count=len(still_running))
            for task in still_running:
                task.cancel()
            await asyncio.gather(*still_running, return_exceptions=True)
