"""
Workflow Schemas

Payloads of the Falcon workflow execute / execution-results endpoints.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

IN_PROGRESS = "In progress"


class WorkflowState(str, Enum):
    TRIGGERED = "Triggered"
    POLLING = "Polling"
    COMPLETED = "Completed"
    FAILED = "Failed"
    TIMED_OUT = "TimedOut"


class ApiErrorEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: Optional[Any] = None
    message: str = ""

    def __str__(self) -> str:
        return f"{self.code} {self.message}"


class TriggerResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    errors: Optional[list[ApiErrorEntry]] = None
    resources: Optional[list[Any]] = None


class ExecutionResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: Optional[str] = None
    output_data: Optional[dict[str, Any]] = None


class ExecutionResultsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    errors: Optional[list[ApiErrorEntry]] = None
    resources: Optional[list[ExecutionResult]] = None

    @property
    def status(self) -> Optional[str]:
        return self.resources[0].status if self.resources else None

    @property
    def in_progress(self) -> bool:
        return not self.errors and self.status == IN_PROGRESS


class WorkflowRun(BaseModel):
    """Bookkeeping for one translate invocation"""

    state: WorkflowState = WorkflowState.TRIGGERED
    job_ids: Optional[Any] = None
    attempts: int = 0
