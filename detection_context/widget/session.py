"""
Widget session

One browser widget connection: feeds host events into an orchestrator and
runs translations in the background so the connection keeps receiving.
"""

import asyncio
from typing import Any, Optional

from detection_context.core.logging import get_logger
from detection_context.services.orchestrator import DetectionOrchestrator
from detection_context.widget.events import DetectionEventBus, extract_detection_id

logger = get_logger(__name__)


class WidgetSession:
    def __init__(self, orchestrator: DetectionOrchestrator, events: Optional[DetectionEventBus] = None):
        self.orchestrator = orchestrator
        self.events = events if events is not None else DetectionEventBus()
        self.orchestrator.attach(self.events)
        self._tasks: set[asyncio.Task] = set()

    async def start(self, detection_id: Optional[str]) -> None:
        if detection_id:
            await self.orchestrator.on_load(detection_id)

    async def handle_message(self, message: Any) -> Optional[str]:
        """
        Dispatch one message from the browser shell.

        Returns an error description for messages that cannot be handled.
        """
        if not isinstance(message, dict):
            return "Message must be a JSON object"

        if message.get("action") == "translate":
            action = self.orchestrator.take_translate_action()
            if action is None:
                return "Nothing to translate"
            self._spawn(self.orchestrator.run_translate_action(action))
            return None

        if message.get("event") == "data" or "detectionId" in message or "detection" in message:
            data = message.get("data") if isinstance(message.get("data"), dict) else message
            detection_id = extract_detection_id(data)
            if self.orchestrator.current_detection_id is None:
                # First detection of the session
                await self.start(detection_id)
            else:
                await self.events.publish(detection_id)
            return None

        return "Unknown message"

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for background translations to finish"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self.orchestrator.detach()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
