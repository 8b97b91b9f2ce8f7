"""
Detection change events

Subscribers are called in subscription order with the id of the newly
focused detection.
"""

from typing import Any, Awaitable, Callable, Optional


DetectionListener = Callable[[str], Awaitable[Any]]


def extract_detection_id(data: Any) -> Optional[str]:
    """Read the detection id from a host `data` event payload"""
    if not isinstance(data, dict):
        return None
    detection = data.get("detection") or {}
    return data.get("detectionId") or (detection.get("composite_id") if isinstance(detection, dict) else None)


class DetectionEventBus:
    def __init__(self):
        self._listeners: list[DetectionListener] = []

    def subscribe(self, listener: DetectionListener) -> Callable[[], None]:
        """Register a listener and return a function that removes it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def publish(self, detection_id: Optional[str]) -> None:
        for listener in list(self._listeners):
            await listener(detection_id)

    def __len__(self) -> int:
        return len(self._listeners)
