from pydantic import BaseModel
from typing import Literal, Optional

NotificationType = Literal[
    "upvote",
    "comment",
    "proposal",
    "proposal_accepted",
    "proposal_rejected",
    "follow",
    "message",
]


class CreateNotificationRequest(BaseModel):
    recipient: str
    type: NotificationType
    message: str
    idea: Optional[str] = None
    proposal: Optional[str] = None

class NotificationResponse(BaseModel):
    id: str
    recipient: str
    sender: Optional[str] = None
    type: NotificationType
    message: str
    idea: Optional[str] = None
    proposal: Optional[str] = None
    read: bool
    created_at: str

class MarkAllReadResponse(BaseModel):
    updated: int
