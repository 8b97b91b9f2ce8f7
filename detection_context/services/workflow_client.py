"""
Workflow Client

Triggers the translation workflow and polls its execution until it reaches a
terminal status or the polling budget runs out.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol

from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt, wait_none

from detection_context.core.config import settings
from detection_context.core.errors import (
    WorkflowRemoteError,
    WorkflowTimeoutError,
    WorkflowTriggerError,
)
from detection_context.core.logging import get_logger
from detection_context.schemas.context import CollectionEntry
from detection_context.schemas.workflow import (
    ExecutionResultsResponse,
    TriggerResponse,
    WorkflowRun,
    WorkflowState,
)

logger = get_logger(__name__)


class WorkflowApi(Protocol):
    async def execute_workflow(self, name: str, payload: dict) -> dict: ...

    async def get_execution_results(self, ids: Any) -> dict: ...


@dataclass(frozen=True)
class PollPolicy:
    max_attempts: int
    interval: float

    @classmethod
    def from_settings(cls) -> "PollPolicy":
        return cls(
            max_attempts=settings.workflow_poll_max_attempts,
            interval=settings.workflow_poll_interval,
        )


class WorkflowClient:
    def __init__(
        self,
        api: WorkflowApi,
        workflow_name: Optional[str] = None,
        policy: Optional[PollPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.api = api
        self.workflow_name = workflow_name or settings.workflow_name
        self.policy = policy or PollPolicy.from_settings()
        self._sleep = sleep
        self.last_run: Optional[WorkflowRun] = None

    async def translate_html(
        self,
        language: str,
        html_content: str,
        collection_entry: CollectionEntry,
    ) -> str:
        """
        Run the translation workflow and return the translated HTML.

        Raises WorkflowTriggerError when the execution request is rejected,
        WorkflowRemoteError when polling reports an error and
        WorkflowTimeoutError when no terminal status shows up in time.
        """
        run = WorkflowRun()
        self.last_run = run

        payload = {
            "language": language,
            "htmlContent": html_content,
            **collection_entry.model_dump(by_alias=True),
        }
        try:
            trigger = TriggerResponse.model_validate(
                await self.api.execute_workflow(self.workflow_name, payload)
            )
        except Exception:
            self._transition(run, WorkflowState.FAILED)
            raise

        if trigger.errors:
            self._transition(run, WorkflowState.FAILED)
            raise WorkflowTriggerError(str(trigger.errors[0]))

        run.job_ids = trigger.resources[0] if trigger.resources else None
        self._transition(run, WorkflowState.POLLING)

        try:
            results = await self._poll(run)
        except WorkflowTimeoutError:
            raise
        except Exception:
            self._transition(run, WorkflowState.FAILED)
            raise

        if results.errors:
            self._transition(run, WorkflowState.FAILED)
            raise WorkflowRemoteError(str(results.errors[0]))

        self._transition(run, WorkflowState.COMPLETED)
        output_data = results.resources[0].output_data if results.resources else None
        return "\n".join(str(value) for value in (output_data or {}).values())

    async def _poll(self, run: WorkflowRun) -> ExecutionResultsResponse:
        async def attempt() -> ExecutionResultsResponse:
            run.attempts += 1
            await self._sleep(self.policy.interval)
            body = await self.api.get_execution_results(run.job_ids)
            return ExecutionResultsResponse.model_validate(body)

        def give_up(retry_state: RetryCallState):
            self._transition(run, WorkflowState.TIMED_OUT)
            raise WorkflowTimeoutError(run.attempts)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=wait_none(),
            retry=retry_if_result(lambda response: response.in_progress),
            retry_error_callback=give_up,
        )
        return await retrying(attempt)

    def _transition(self, run: WorkflowRun, state: WorkflowState) -> None:
        logger.info(
            f"Workflow {self.workflow_name} [{run.job_ids}] {run.state.value} -> {state.value} "
            f"after {run.attempts} polls"
        )
        run.state = state
