"""Transport-neutral events and queries handled by the dispatcher."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from motbot.models.telegram import TelegramChat, TelegramMessage


def display_name(username: str, first_name: str, last_name: str) -> str:
    """Best available human label: handle, then full name, then first name."""
    if username:
        return username
    if first_name and last_name:
        return f"{first_name} {last_name}"
    return first_name


class InboundEvent(BaseModel):
    """One incoming message, either a command or free text."""

    model_config = ConfigDict(frozen=True)

    chat_id: int
    text: str = ""
    is_command: bool = False
    command: str = ""
    chat_type: str = "private"
    user_id: int | None = None
    username: str = ""
    first_name: str = ""
    last_name: str = ""

    @classmethod
    def from_message(cls, message: TelegramMessage) -> InboundEvent:
        sender = message.from_user
        return cls(
            chat_id=message.chat.id,
            text=message.text,
            is_command=message.is_command,
            command=message.command,
            chat_type=message.chat.type,
            user_id=sender.id if sender is not None else None,
            username=sender.username if sender is not None else "",
            first_name=sender.first_name if sender is not None else "",
            last_name=sender.last_name if sender is not None else "",
        )

    @property
    def sender_label(self) -> str:
        return display_name(self.username, self.first_name, self.last_name)


class RegistrationQuery(BaseModel):
    """A registration lookup requested from one chat."""

    model_config = ConfigDict(frozen=True)

    registration: str
    chat_id: int
    user_id: int | None = None
    sender_label: str = ""

    @field_validator("registration")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @classmethod
    def from_event(cls, event: InboundEvent) -> RegistrationQuery:
        return cls(
            registration=event.text,
            chat_id=event.chat_id,
            user_id=event.user_id,
            sender_label=event.sender_label,
        )


class ChatInfo(BaseModel):
    """Identity details resolved for a chat via ``getChat``."""

    model_config = ConfigDict(frozen=True)

    id: int
    type: str = "private"
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    title: str = ""

    @classmethod
    def from_chat(cls, chat: TelegramChat) -> ChatInfo:
        return cls(
            id=chat.id,
            type=chat.type,
            username=chat.username,
            first_name=chat.first_name,
            last_name=chat.last_name,
            title=chat.title,
        )

    @property
    def is_private(self) -> bool:
        return self.type == "private"

    @property
    def label(self) -> str:
        return display_name(self.username, self.first_name, self.last_name)
