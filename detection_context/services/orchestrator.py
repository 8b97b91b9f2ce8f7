"""
Detection Orchestrator

Decides what the widget shows for the focused detection and runs the
translation workflow when the viewer asks for it.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol

from pydantic import BaseModel

from detection_context.core.errors import WorkflowTimeoutError
from detection_context.core.logging import get_logger
from detection_context.schemas.context import CollectionEntry, ContextEntry
from detection_context.schemas.detection import Comment, Detection
from detection_context.services.context_store import ContextStore
from detection_context.services.renderer import render_detection, render_error, render_panel
from detection_context.services.workflow_client import WorkflowClient
from detection_context.widget.events import DetectionEventBus
from detection_context.widget.slots import WidgetSlots

logger = get_logger(__name__)

DEFAULT_LANGUAGE = "en"

LOADING_CONTEXT = "Loading detection context..."
NO_TRANSLATION_NEEDED = "Your browser language is already configured in English. No translation needed."
TRANSLATION_PROMPT = """
        <div>
          <p>There is no yet translation available for this detection. Click in the button to get an AI translation of the detection details.</p>
          <p>The translation will use Charlotte AI credit</p>
          <button id="translateBtn" type="button" data-action="translate"
            class="focusable interactive-normal type-md-medium rounded-sm my-2 py-1 px-3 transition duration-150 ease-in-out">
            Translate detection details
          </button>
        </div>"""
IN_PROGRESS_TITLE = "Translation in progress..."
IN_PROGRESS_CONTENT = (
    "Your translation is being processed. This may take a few moments depending on content size"
)
PROCESSING_ERROR = "Error processing detection"
TRANSLATION_ERROR = "Error translating detection"


def resolve_language(tag: Optional[str]) -> str:
    """Primary subtag of a browser language tag: 'es-MX' -> 'es'"""
    if not tag:
        return DEFAULT_LANGUAGE
    primary = tag.strip().lower().replace("_", "-").split("-")[0]
    return primary or DEFAULT_LANGUAGE


class HostApi(Protocol):
    async def get_detection_by_id(self, detection_id: str) -> Detection: ...

    async def get_detection_comments(self, detection_id: str) -> Iterable[Comment]: ...


class ProcessResult(BaseModel):
    entries: list[ContextEntry]
    language: str


@dataclass(frozen=True)
class TranslateAction:
    """The translate button of one rendered state"""

    detection_id: str
    language: str
    collection_entry: CollectionEntry


class DetectionOrchestrator:
    def __init__(
        self,
        store: ContextStore,
        host: HostApi,
        workflow: WorkflowClient,
        slots: WidgetSlots,
        language: str = DEFAULT_LANGUAGE,
    ):
        self.store = store
        self.host = host
        self.workflow = workflow
        self.slots = slots
        self.language = language
        self.current_detection_id: Optional[str] = None
        self.translate_action: Optional[TranslateAction] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    # -- Host entry points -------------------------------------------------

    def attach(self, events: DetectionEventBus) -> None:
        self.detach()
        self._unsubscribe = events.subscribe(self.on_detection_changed)

    def detach(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    async def on_load(self, detection_id: str, language: Optional[str] = None) -> ProcessResult:
        if language:
            self.language = language
        self.current_detection_id = detection_id
        return await self.process_detection(detection_id, self.language)

    async def on_detection_changed(self, new_id: Optional[str]) -> Optional[ProcessResult]:
        # Ignore events before the first load and repeats of the focused detection
        if not new_id or not self.current_detection_id or new_id == self.current_detection_id:
            return None

        self.current_detection_id = new_id
        return await self.process_detection(new_id, self.language)

    def take_translate_action(self) -> Optional[TranslateAction]:
        """Consume the translate button of the current render; it fires once"""
        action, self.translate_action = self.translate_action, None
        return action

    async def trigger_translate(self) -> bool:
        """Activate the translate button of the current render, if any"""
        action = self.take_translate_action()
        if action is None:
            return False
        await self.run_translate_action(action)
        return True

    async def run_translate_action(self, action: TranslateAction) -> None:
        await self.translate_detection(action.detection_id, action.language, action.collection_entry)

    # -- Rendering ---------------------------------------------------------

    async def process_detection(self, detection_id: str, language: str) -> ProcessResult:
        self.translate_action = None
        await self.slots.translation.set_content("")
        await self.slots.context.set_content(render_panel("", LOADING_CONTEXT))

        try:
            entries = await self.store.list_entries(detection_id)
        except Exception as e:
            logger.error(f"Error processing detection {detection_id}: {e}")
            await self.slots.translation.set_content(render_error(PROCESSING_ERROR, str(e)))
            return ProcessResult(entries=[], language=language)

        collection_entry = CollectionEntry.for_translation(detection_id, language)
        object_key = collection_entry.object_key
        translation = next((entry for entry in entries if entry.object_key == object_key), None)

        if translation:
            translation_html = render_panel(translation.title, translation.content)
        elif language == DEFAULT_LANGUAGE:
            translation_html = render_panel(collection_entry.title, NO_TRANSLATION_NEEDED)
        else:
            translation_html = render_panel(collection_entry.title, TRANSLATION_PROMPT)
            self.translate_action = TranslateAction(detection_id, language, collection_entry)

        await self.slots.translation.set_content(translation_html)
        await self.slots.context.set_content(
            "".join(
                render_panel(entry.title, entry.content)
                for entry in entries
                if entry.object_key != object_key
            )
        )

        return ProcessResult(entries=entries, language=language)

    async def translate_detection(
        self,
        detection_id: str,
        language: str,
        collection_entry: CollectionEntry,
    ) -> None:
        # The in-progress panel replaces the button
        if self.translate_action and self.translate_action.detection_id == detection_id:
            self.translate_action = None
        await self.slots.translation.set_content(render_panel(IN_PROGRESS_TITLE, IN_PROGRESS_CONTENT))

        try:
            detection = await self.host.get_detection_by_id(detection_id)
            comments = await self.host.get_detection_comments(detection_id)
            html_content = render_detection(detection, comments)

            translated = await self.workflow.translate_html(
                language=language,
                html_content=html_content,
                collection_entry=collection_entry,
            )
        except WorkflowTimeoutError:
            # The workflow may have stored the translation even though polling
            # never saw it complete; the collection decides what to show.
            logger.info(f"Translation of {detection_id} not confirmed in time, refreshing from the collection")
            if not self._is_stale(detection_id):
                await self.process_detection(detection_id, language)
            return
        except Exception as e:
            logger.error(f"Error translating detection {detection_id}: {e}")
            if not self._is_stale(detection_id):
                await self.slots.translation.set_content(render_error(TRANSLATION_ERROR, str(e)))
            return

        if self._is_stale(detection_id):
            logger.info(f"Translation of {detection_id} finished after the view moved on")
            return

        await self.slots.translation.set_content(
            render_panel(collection_entry.title, translated or html_content)
        )

    def _is_stale(self, detection_id: str) -> bool:
        return self.current_detection_id is not None and self.current_detection_id != detection_id
