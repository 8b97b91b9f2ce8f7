"""
Render slots

The widget has two render targets, the translation slot and the context slot.
Both only accept a full content replacement.
"""

from typing import Protocol

from fastapi import WebSocket

TRANSLATION_SLOT = "translationSlot"
CONTEXT_SLOT = "contextSlot"


class RenderSlot(Protocol):
    async def set_content(self, html: str) -> None: ...


class MemorySlot:
    """Keeps the last content and the full history; used by tests and previews"""

    def __init__(self, name: str = ""):
        self.name = name
        self.content = ""
        self.history: list[str] = []

    async def set_content(self, html: str) -> None:
        self.content = html
        self.history.append(html)


class WebSocketSlot:
    """Pushes `{"slot": name, "html": ...}` messages to the browser shell"""

    def __init__(self, websocket: WebSocket, name: str):
        self.websocket = websocket
        self.name = name

    async def set_content(self, html: str) -> None:
        await self.websocket.send_json({"slot": self.name, "html": html})


class WidgetSlots:
    def __init__(self, translation: RenderSlot, context: RenderSlot):
        self.translation = translation
        self.context = context

    @classmethod
    def in_memory(cls) -> "WidgetSlots":
        return cls(MemorySlot(TRANSLATION_SLOT), MemorySlot(CONTEXT_SLOT))

    @classmethod
    def for_websocket(cls, websocket: WebSocket) -> "WidgetSlots":
        return cls(
            WebSocketSlot(websocket, TRANSLATION_SLOT),
            WebSocketSlot(websocket, CONTEXT_SLOT),
        )
