"""
Detection Schemas

Read-only views over the Falcon alert and case-activity payloads.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class AutomatedTriage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    triage_explanation: Optional[str] = None


class Detection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    composite_id: Optional[str] = None
    description: Optional[str] = None
    overwatch_note: Optional[str] = None
    overwatch_note_timestamp: Optional[str] = None
    automated_triage: Optional[AutomatedTriage] = None

    @property
    def triage_explanation(self) -> Optional[str]:
        return self.automated_triage.triage_explanation if self.automated_triage else None


class CommentAuthor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    display_name: Optional[str] = None


class Comment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "comment"
    created_by: CommentAuthor = CommentAuthor()
    created_time: Optional[str] = None
    body: Optional[str] = None
