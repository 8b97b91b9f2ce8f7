"""
Context Entry Schemas
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

TRANSLATION_TYPE_PREFIX = "translation_"

# '_' is stripped too, so the id part never contains the type separator.
# Ids with '_' therefore key differently from stores that keep '\w' characters.
_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9\-.]")


def clean_composite_id(composite_id: str) -> str:
    """Drop every character that is not alphanumeric, '-' or '.'"""
    return _UNSAFE_KEY_CHARS.sub("", composite_id)


def compute_object_key(composite_id: str, entry_type: str) -> str:
    """Storage key of a context entry: cleaned composite id + '_' + type"""
    return f"{clean_composite_id(composite_id)}_{entry_type}"


def translation_type(language: str) -> str:
    return f"{TRANSLATION_TYPE_PREFIX}{language}"


def translation_title(language: str) -> str:
    return f"Detection translation ({language})"


class ContextEntry(BaseModel):
    """A title/content record stored in the detection_context collection"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    object_key: Optional[str] = Field(default=None, alias="objectKey")
    composite_id: Optional[str] = Field(default=None, alias="compositeId")
    title: str = ""
    content: str = ""
    type: str = ""

    def to_record(self) -> dict:
        """Wire representation written to the collection"""
        return self.model_dump(by_alias=True, exclude_none=True)


class CollectionEntry(BaseModel):
    """Identity of the translation entry handed to the workflow"""

    model_config = ConfigDict(populate_by_name=True)

    composite_id: str = Field(alias="compositeId")
    title: str
    type: str
    object_key: str = Field(alias="objectKey")

    @classmethod
    def for_translation(cls, detection_id: str, language: str) -> "CollectionEntry":
        entry_type = translation_type(language)
        return cls(
            composite_id=detection_id,
            title=translation_title(language),
            type=entry_type,
            object_key=compute_object_key(detection_id, entry_type),
        )


class ContextEntryWrite(BaseModel):
    title: str
    content: str
