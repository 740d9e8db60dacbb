from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional
from constants import MAX_MESSAGE_LENGTH


class CreateChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId", validation_alias=AliasChoices("userId", "user_id"))

class SendMessageRequest(BaseModel):
    text: str = Field(min_length=1, max_length=MAX_MESSAGE_LENGTH)

class MessageResponse(BaseModel):
    id: str
    chat_id: str
    sender_id: str
    text: str
    created_at: str

class ChatResponse(BaseModel):
    id: str
    participants: list[str]
    messages: list[MessageResponse] = []
    last_message: Optional[str] = None
    last_message_at: Optional[str] = None
    created_at: str
