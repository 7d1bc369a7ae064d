"""
Mattermost entities as they appear in event payloads and REST responses.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from mm_signal.models.fields import EPOCH, BlankAsNone, MillisTimestamp, StringSet, Timestamp


class ChannelType(str, Enum):
    OPEN = "O"
    PRIVATE = "P"
    DIRECT = "D"
    GROUP = "G"
    INTERNAL = "I"  # server-internal channel, never shown to users


class Status(str, Enum):
    ONLINE = "online"
    AWAY = "away"
    DND = "dnd"
    OFFLINE = "offline"


class PostType:
    """Known values of ``Post.type``. Servers add new system types over time, so the field stays a str."""
    USER_MESSAGE = ""
    SYSTEM_EPHEMERAL = "system_ephemeral"
    SYSTEM_JOIN_CHANNEL = "system_join_channel"
    SYSTEM_LEAVE_CHANNEL = "system_leave_channel"
    SYSTEM_HEADER_CHANGE = "system_header_change"
    SYSTEM_PURPOSE_CHANGE = "system_purpose_change"
    SYSTEM_DISPLAYNAME_CHANGE = "system_displayname_change"
    SYSTEM_CHANNEL_DELETED = "system_channel_deleted"
    SYSTEM_ADD_TO_CHANNEL = "system_add_to_channel"
    SYSTEM_REMOVE_FROM_CHANNEL = "system_remove_from_channel"
    SYSTEM_JOIN_TEAM = "system_join_team"
    SYSTEM_REMOVE_FROM_TEAM = "system_remove_from_team"


class Post(BaseModel):
    id: str
    create_at: Timestamp
    update_at: Timestamp
    edit_at: Timestamp = EPOCH
    delete_at: Timestamp = EPOCH
    is_pinned: bool = False
    user_id: str
    channel_id: str
    root_id: BlankAsNone = None  # thread root
    parent_id: str = ""
    original_id: str = ""
    message: str = ""
    type: str = PostType.USER_MESSAGE
    props: dict[str, Any] = Field(default_factory=dict)
    hashtags: StringSet = Field(default_factory=set)
    pending_post_id: str = ""
    file_ids: list[str] = Field(default_factory=list)
    has_reactions: Optional[bool] = None

    @property
    def is_system(self) -> bool:
        return self.type.startswith("system_")


class Reaction(BaseModel):
    user_id: str
    post_id: str
    emoji_name: str
    create_at: Timestamp


class Emoji(BaseModel):
    id: str
    create_at: Timestamp
    update_at: Timestamp
    delete_at: Timestamp = EPOCH
    creator_id: str
    name: str


class Team(BaseModel):
    id: str
    create_at: Timestamp
    update_at: Timestamp
    delete_at: Timestamp = EPOCH
    display_name: str
    name: str
    description: str = ""
    email: str = ""
    type: str = "O"  # "O" open, "I" invite only
    company_name: str = ""
    allowed_domains: str = ""
    invite_id: str = ""
    allow_open_invite: bool = False
    scheme_id: Optional[str] = None
    last_team_icon_update: MillisTimestamp = None


class Channel(BaseModel):
    id: str
    create_at: Timestamp
    update_at: Timestamp
    delete_at: Timestamp = EPOCH
    team_id: str = ""
    type: ChannelType
    display_name: str = ""
    name: str = ""
    header: str = ""
    purpose: str = ""
    last_post_at: Timestamp = EPOCH
    total_msg_count: int = 0
    extra_update_at: Timestamp = EPOCH
    creator_id: str = ""


class NotifyProps(BaseModel):
    desktop: Optional[str] = None
    email: Optional[str] = None
    ignore_channel_mentions: Optional[str] = None
    mark_unread: Optional[str] = None
    push: Optional[str] = None


class ChannelMember(BaseModel):
    channel_id: str
    user_id: str
    roles: StringSet = Field(default_factory=set)
    last_viewed_at: MillisTimestamp = None
    msg_count: int = 0
    mention_count: int = 0
    notify_props: NotifyProps = Field(default_factory=NotifyProps)
    last_update_at: MillisTimestamp = None
    scheme_user: bool = False
    scheme_admin: bool = False
    explicit_roles: StringSet = Field(default_factory=set)


class User(BaseModel):
    id: str
    create_at: Timestamp
    update_at: Timestamp
    delete_at: Timestamp = EPOCH
    username: str
    first_name: str = ""
    last_name: str = ""
    nickname: str = ""
    email: str = ""
    email_verified: Optional[bool] = None
    auth_data: str = ""
    auth_service: str = ""
    position: str = ""
    roles: StringSet = Field(default_factory=set)
    locale: str = ""
    last_password_update: MillisTimestamp = None
    last_picture_update: MillisTimestamp = None
    failed_attempts: Optional[int] = None
    mfa_active: Optional[bool] = None

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return self.nickname or full or self.username
