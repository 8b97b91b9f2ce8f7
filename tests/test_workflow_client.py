"""
Workflow Client Tests
"""

from unittest.mock import AsyncMock, call

import pytest

from detection_context.core.errors import (
    HostApiError,
    WorkflowRemoteError,
    WorkflowTimeoutError,
    WorkflowTriggerError,
)
from detection_context.schemas.context import CollectionEntry
from detection_context.schemas.workflow import WorkflowState
from detection_context.services.workflow_client import PollPolicy, WorkflowClient

IN_PROGRESS = {"resources": [{"status": "In progress"}]}
ENTRY = CollectionEntry.for_translation("test-detection-id", "es")


def make_client(results, trigger=None, max_attempts=12):
    api = AsyncMock()
    api.execute_workflow.return_value = trigger or {"resources": ["exec-1"], "errors": []}
    if isinstance(results, list):
        api.get_execution_results.side_effect = results
    else:
        api.get_execution_results.return_value = results
    sleep = AsyncMock()
    client = WorkflowClient(api, policy=PollPolicy(max_attempts=max_attempts, interval=5), sleep=sleep)
    return client, api, sleep


def test_default_policy_is_twelve_polls_of_five_seconds():
    policy = PollPolicy.from_settings()
    assert policy.max_attempts == 12
    assert policy.interval == 5


@pytest.mark.asyncio
async def test_trigger_payload():
    client, api, _ = make_client({"resources": [{"status": "Completed", "output_data": {}}]})
    await client.translate_html(language="es", html_content="<p>hi</p>", collection_entry=ENTRY)

    api.execute_workflow.assert_awaited_once_with(
        "translate-with-charlotte-ai",
        {
            "language": "es",
            "htmlContent": "<p>hi</p>",
            "compositeId": "test-detection-id",
            "title": "Detection translation (es)",
            "type": "translation_es",
            "objectKey": "test-detection-id_translation_es",
        },
    )
    api.get_execution_results.assert_awaited_with("exec-1")


@pytest.mark.asyncio
async def test_completed_joins_output_values_in_order():
    completed = {
        "resources": [
            {"status": "Completed", "output_data": {"first": "<p>uno</p>", "second": "<p>dos</p>"}}
        ]
    }
    client, api, sleep = make_client([IN_PROGRESS, IN_PROGRESS, completed])

    result = await client.translate_html("es", "<p>x</p>", ENTRY)

    assert result == "<p>uno</p>\n<p>dos</p>"
    assert api.get_execution_results.await_count == 3
    assert sleep.await_args_list == [call(5)] * 3
    assert client.last_run.state == WorkflowState.COMPLETED


@pytest.mark.asyncio
async def test_completed_without_output_is_empty_string():
    client, _, _ = make_client({"resources": [{"status": "Completed"}]})
    assert await client.translate_html("es", "<p>x</p>", ENTRY) == ""


@pytest.mark.asyncio
async def test_trigger_error_fails_without_polling():
    client, api, sleep = make_client(
        IN_PROGRESS,
        trigger={"errors": [{"code": 400, "message": "Invalid language"}, {"code": 500, "message": "other"}]},
    )

    with pytest.raises(WorkflowTriggerError, match="400 Invalid language"):
        await client.translate_html("xx", "<p>x</p>", ENTRY)

    api.get_execution_results.assert_not_awaited()
    sleep.assert_not_awaited()
    assert client.last_run.state == WorkflowState.FAILED


@pytest.mark.asyncio
async def test_remote_error_while_polling():
    failed = {"errors": [{"code": 500, "message": "LLM unavailable"}], "resources": [{"status": "In progress"}]}
    client, api, _ = make_client([IN_PROGRESS, failed])

    with pytest.raises(WorkflowRemoteError, match="500 LLM unavailable"):
        await client.translate_html("es", "<p>x</p>", ENTRY)

    assert api.get_execution_results.await_count == 2
    assert client.last_run.state == WorkflowState.FAILED


@pytest.mark.asyncio
async def test_times_out_after_exactly_twelve_delayed_polls():
    client, api, sleep = make_client(IN_PROGRESS)

    with pytest.raises(WorkflowTimeoutError) as exc_info:
        await client.translate_html("es", "<p>x</p>", ENTRY)

    assert exc_info.value.attempts == 12
    assert sleep.await_count == 12
    assert api.get_execution_results.await_count == 12
    assert client.last_run.state == WorkflowState.TIMED_OUT


@pytest.mark.asyncio
async def test_terminal_status_on_last_attempt_is_not_a_timeout():
    completed = {"resources": [{"status": "Completed", "output_data": {"html": "done"}}]}
    client, api, _ = make_client([IN_PROGRESS] * 11 + [completed])

    assert await client.translate_html("es", "<p>x</p>", ENTRY) == "done"
    assert api.get_execution_results.await_count == 12


@pytest.mark.asyncio
async def test_timeout_is_not_a_generic_workflow_failure():
    client, _, _ = make_client(IN_PROGRESS, max_attempts=2)

    with pytest.raises(WorkflowTimeoutError):
        await client.translate_html("es", "<p>x</p>", ENTRY)

    assert not issubclass(WorkflowTimeoutError, (WorkflowTriggerError, WorkflowRemoteError))


@pytest.mark.asyncio
async def test_poll_request_failure_propagates():
    client, _, _ = make_client([IN_PROGRESS, HostApiError("Falcon request failed: 503")])

    with pytest.raises(HostApiError):
        await client.translate_html("es", "<p>x</p>", ENTRY)

    assert client.last_run.state == WorkflowState.FAILED


@pytest.mark.asyncio
async def test_trigger_request_failure_marks_run_failed():
    client, api, sleep = make_client(IN_PROGRESS)
    api.execute_workflow.side_effect = HostApiError("Falcon request failed: 503")

    with pytest.raises(HostApiError):
        await client.translate_html("es", "<p>x</p>", ENTRY)

    api.get_execution_results.assert_not_awaited()
    sleep.assert_not_awaited()
    assert client.last_run.state == WorkflowState.FAILED
