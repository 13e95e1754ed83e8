"""
Modele Pydantic dla przychodzących aktualizacji Telegram Bot API.
Tylko pola, z których korzysta bot; reszta payloadu jest ignorowana.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from contracts import ChatType, GroupRecord, UserRecord


class _TgModel(BaseModel):
    # "from" to słowo kluczowe Pythona → pole from_user z aliasem
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TgUser(_TgModel):
    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None

    def to_record(self) -> UserRecord:
        return UserRecord(
            user_id=self.id,
            first_name=self.first_name or "",
            last_name=self.last_name or "",
            username=self.username or "",
            language_code=self.language_code or "",
            is_bot=self.is_bot,
        )


class TgChat(_TgModel):
    id: int
    type: ChatType
    title: Optional[str] = None

    def to_record(self) -> GroupRecord:
        return GroupRecord(chat_id=self.id, title=self.title or "", chat_type=self.type)


class TgMessage(_TgModel):
    message_id: int
    chat: TgChat
    from_user: Optional[TgUser] = Field(default=None, alias="from")
    text: Optional[str] = None


class TgCallbackQuery(_TgModel):
    id: str
    from_user: TgUser = Field(alias="from")
    message: Optional[TgMessage] = None
    data: Optional[str] = None


class TgInlineQuery(_TgModel):
    id: str
    from_user: TgUser = Field(alias="from")
    query: str = ""


class TgChatMember(_TgModel):
    status: str   # creator | administrator | member | restricted | left | kicked
    user: Optional[TgUser] = None


class TgChatMemberUpdated(_TgModel):
    chat: TgChat
    from_user: Optional[TgUser] = Field(default=None, alias="from")
    new_chat_member: TgChatMember


class TgUpdate(_TgModel):
    update_id: int
    message: Optional[TgMessage] = None
    callback_query: Optional[TgCallbackQuery] = None
    inline_query: Optional[TgInlineQuery] = None
    my_chat_member: Optional[TgChatMemberUpdated] = None
