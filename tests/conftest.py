"""
Conftest
"""

from unittest.mock import AsyncMock

import pytest

from detection_context.schemas.context import clean_composite_id
from detection_context.schemas.detection import AutomatedTriage, Comment, CommentAuthor, Detection
from detection_context.services.context_store import ContextStore
from detection_context.services.orchestrator import DetectionOrchestrator
from detection_context.widget.slots import WidgetSlots

DETECTION_ID = "test-detection-id"


class FakeCollection:
    """In-memory stand-in for the detection_context collection"""

    def __init__(self, records: dict = None):
        self.records = dict(records or {})
        self.failing_reads: set[str] = set()
        self.list_error: Exception = None

    async def list_keys(self, composite_id: str) -> list[str]:
        if self.list_error:
            raise self.list_error
        prefix = f"{clean_composite_id(composite_id)}_"
        return [key for key in self.records if key.startswith(prefix)]

    async def read(self, object_key: str) -> dict:
        if object_key in self.failing_reads:
            raise ConnectionError(f"read {object_key} failed")
        return self.records[object_key]

    async def write(self, object_key: str, record: dict) -> dict:
        self.records[object_key] = record
        return {"object_key": object_key}

    async def delete(self, object_key: str) -> dict:
        self.records.pop(object_key, None)
        return {"object_key": object_key}


def make_detection() -> Detection:
    return Detection(
        composite_id=DETECTION_ID,
        description="Test Description",
        overwatch_note="Test Overwatch Note",
        overwatch_note_timestamp="2024-01-01T00:00:00Z",
        automated_triage=AutomatedTriage(triage_explanation="Likely benign"),
    )


def make_comments() -> list[Comment]:
    return [
        Comment(
            created_by=CommentAuthor(display_name="User"),
            created_time="2023-01-01",
            body="Comment",
        )
    ]


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection(
        {
            f"{DETECTION_ID}_note": {
                "compositeId": DETECTION_ID,
                "title": "Note",
                "content": "Note content",
                "type": "note",
            },
        }
    )


@pytest.fixture
def store(collection) -> ContextStore:
    return ContextStore(collection)


@pytest.fixture
def host() -> AsyncMock:
    host = AsyncMock()
    host.get_detection_by_id.return_value = make_detection()
    host.get_detection_comments.return_value = make_comments()
    return host


@pytest.fixture
def workflow() -> AsyncMock:
    workflow = AsyncMock()
    workflow.translate_html.return_value = "Translated content"
    return workflow


@pytest.fixture
def slots() -> WidgetSlots:
    return WidgetSlots.in_memory()


@pytest.fixture
def orchestrator(store, host, workflow, slots) -> DetectionOrchestrator:
    return DetectionOrchestrator(store=store, host=host, workflow=workflow, slots=slots)
