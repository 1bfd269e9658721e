"""Telegram Bot API payload models.

Only the subset of the ``Update`` object the bot consumes is modelled.
Bot API keys are already snake_case, so these models do not use the
camelCase alias generator of the provider models.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _TelegramModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )


class TelegramUser(_TelegramModel):
    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: str = ""
    username: str = ""


class TelegramChat(_TelegramModel):
    """A chat as returned inside messages and by ``getChat``."""

    id: int
    type: str = "private"
    title: str = ""
    username: str = ""
    first_name: str = ""
    last_name: str = ""

    @property
    def is_private(self) -> bool:
        return self.type == "private"


class MessageEntity(_TelegramModel):
    type: str
    offset: int
    length: int


class TelegramMessage(_TelegramModel):
    message_id: int
    chat: TelegramChat
    from_user: TelegramUser | None = Field(default=None, alias="from")
    text: str = ""
    entities: list[MessageEntity] = Field(default_factory=list)

    @property
    def is_command(self) -> bool:
        """Whether the text starts with a ``bot_command`` entity."""
        if not self.entities:
            return False
        first = self.entities[0]
        return first.offset == 0 and first.type == "bot_command"

    @property
    def command(self) -> str:
        """Command name without the leading slash or ``@botname`` suffix."""
        if not self.is_command:
            return ""
        entity = self.entities[0]
        name = self.text[1 : entity.length]
        name, _, _ = name.partition("@")
        return name.lower()


class TelegramUpdate(_TelegramModel):
    update_id: int
    message: TelegramMessage | None = None
