"""
Content Renderer

Turns detections, comments and context entries into sanitized HTML fragments.
Every externally sourced string goes through `sanitize` before it is placed
into a fragment.
"""

from typing import Iterable, Optional

import nh3

from detection_context.schemas.detection import Comment, Detection

_ALLOWED_TAGS = set(nh3.ALLOWED_TAGS) | {"button"}
_ALLOWED_ATTRIBUTES = {tag: set(attrs) for tag, attrs in nh3.ALLOWED_ATTRIBUTES.items()}
_ALLOWED_ATTRIBUTES.setdefault("*", set()).update({"class"})
_ALLOWED_ATTRIBUTES["button"] = {"id", "type", "data-action"}


def sanitize(value: Optional[str]) -> str:
    """Strip scripts, event handlers and unsafe URLs; None becomes ''"""
    if value is None:
        return ""
    return nh3.clean(str(value), tags=_ALLOWED_TAGS, attributes=_ALLOWED_ATTRIBUTES)


def render_panel(title: Optional[str], content: Optional[str]) -> str:
    return f"""<div class="my-4 space-y-2 rounded bg-surface-md p-3 shadow-base">
      <header class="type-md-tight-medium overflow-hidden text-titles-and-attributes">
        {sanitize(title)}
      </header>
      <div class="type-md min-h-6 text-titles-and-attributes">
        {sanitize(content)}
      </div>
    </div>"""


def render_error(prefix: str, message: Optional[str]) -> str:
    return f"""
      <div class="p-4 bg-red-100 border border-red-400 text-red-700 rounded">
        {sanitize(prefix)}: {sanitize(message)}
      </div>
    """


def render_comment(comment: Comment) -> str:
    return f"""
  <li class="grid gap-1">
    <div class="font-semibold text-gray-900">
        {sanitize(comment.created_by.display_name)} on {sanitize(comment.created_time)}
    </div>
    {sanitize(comment.body)}
  </li>"""


def render_detection(detection: Detection, comments: Iterable[Comment] = ()) -> str:
    comments = list(comments)

    timestamp = ""
    if detection.overwatch_note_timestamp:
        timestamp = f"({sanitize(detection.overwatch_note_timestamp)})"

    html = f"""
  <dl class="space-y-6">
    <div class="grid gap-1">
      <dt class="font-semibold text-gray-900">Description</dt>
      <dd class="text-gray-600">
        {sanitize(detection.description)}
      </dd>
    </div>

    <div class="grid gap-1">
      <dt class="font-semibold text-gray-900">
        Overwatch notes {timestamp}
      </dt>
      <dd class="text-gray-600">
        {sanitize(detection.overwatch_note)}
      </dd>
    </div>

    <div class="grid gap-1">
      <dt class="font-semibold text-gray-900">AI Triage</dt>
      <dd class="text-gray-600">
        {sanitize(detection.triage_explanation)}
      </dd>
    </div>
  </dl>
"""

    if comments:
        items = "\n".join(sanitize(render_comment(comment)) for comment in comments)
        html += f"""
    <div class="mt-6">
      <h2 class="font-semibold text-gray-900">Falcon complete</h2>
      <h3 class="font-semibold text-gray-900 text-sm">Comments</h3>
      <ul class="space-y-6">
        {items}
      </ul>
    </div>"""

    return html
