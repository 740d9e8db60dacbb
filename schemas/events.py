from typing import Any
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SendMessageEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: str = Field(alias="chatId", validation_alias=AliasChoices("chatId", "roomId", "chat_id"))
    message: dict


class TypingEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: str = Field(alias="chatId", validation_alias=AliasChoices("chatId", "roomId", "chat_id"))
    user_id: str = Field(alias="userId", validation_alias=AliasChoices("userId", "user_id"))


class SendNotificationEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recipient_id: str = Field(alias="recipientId", validation_alias=AliasChoices("recipientId", "recipient_id"))
    notification: dict


class Frame(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event: str
    data: Any = None
