"""
Server-pushed WebSocket events.

Each recognized event kind has its own model carrying only the fields of that
kind. ``EVENT_TYPES`` maps the wire tag to the model; anything else decodes to
``Ignored`` so that new server events never break a running session.
"""

from typing import Any, ClassVar, Optional, Union

from pydantic import BaseModel, Field

from mm_signal.models.entities import (
    Channel,
    ChannelMember,
    ChannelType,
    Emoji,
    Post,
    Reaction,
    Status,
    Team,
    User,
)
from mm_signal.models.fields import EmbeddedJson, MillisTimestamp


class EventKind:
    HELLO = "hello"
    STATUS_CHANGE = "status_change"
    TYPING = "typing"
    POSTED = "posted"
    POST_EDITED = "post_edited"
    POST_DELETED = "post_deleted"
    EPHEMERAL_MESSAGE = "ephemeral_message"
    REACTION_ADDED = "reaction_added"
    REACTION_REMOVED = "reaction_removed"
    CHANNEL_CREATED = "channel_created"
    CHANNEL_UPDATED = "channel_updated"
    CHANNEL_DELETED = "channel_deleted"
    CHANNEL_VIEWED = "channel_viewed"
    CHANNEL_MEMBER_UPDATED = "channel_member_updated"
    DIRECT_ADDED = "direct_added"
    GROUP_ADDED = "group_added"
    NEW_USER = "new_user"
    USER_ADDED = "user_added"
    USER_REMOVED = "user_removed"
    USER_UPDATED = "user_updated"
    UPDATE_TEAM = "update_team"
    DELETE_TEAM = "delete_team"
    LEAVE_TEAM = "leave_team"
    EMOJI_ADDED = "emoji_added"
    PREFERENCES_CHANGED = "preferences_changed"
    PREFERENCES_DELETED = "preferences_deleted"
    CONFIG_CHANGED = "config_changed"


class Event(BaseModel):
    kind: ClassVar[str] = ""

    model_config = {"populate_by_name": True}

    @property
    def tag(self) -> str:
        """The wire tag this event is sent under."""
        return self.kind


class Ignored(Event):
    """An event kind the bridge has no model for."""
    event: str = ""

    @property
    def tag(self) -> str:
        return self.event


class Hello(Event):
    """First event on every connection; its broadcast names our own user id."""
    kind: ClassVar[str] = EventKind.HELLO
    server_version: str = ""


class StatusChange(Event):
    kind: ClassVar[str] = EventKind.STATUS_CHANGE
    status: Status
    user_id: str


class Typing(Event):
    kind: ClassVar[str] = EventKind.TYPING
    parent_id: str = ""
    user_id: str


class Posted(Event):
    kind: ClassVar[str] = EventKind.POSTED
    channel_display_name: str = ""
    channel_name: str = ""
    channel_type: ChannelType
    post: EmbeddedJson[Post]
    sender_name: str = ""
    team_id: str = ""
    mentions: Optional[EmbeddedJson[list[str]]] = None
    # Older servers send these as strings, newer ones as booleans.
    image: Optional[Union[bool, str]] = None
    other_file: Optional[Union[bool, str]] = Field(default=None, alias="otherFile")


class PostEdited(Event):
    kind: ClassVar[str] = EventKind.POST_EDITED
    post: EmbeddedJson[Post]


class PostDeleted(Event):
    kind: ClassVar[str] = EventKind.POST_DELETED
    post: EmbeddedJson[Post]


class EphemeralMessage(Event):
    kind: ClassVar[str] = EventKind.EPHEMERAL_MESSAGE
    post: EmbeddedJson[Post]


class ReactionAdded(Event):
    kind: ClassVar[str] = EventKind.REACTION_ADDED
    reaction: EmbeddedJson[Reaction]


class ReactionRemoved(Event):
    kind: ClassVar[str] = EventKind.REACTION_REMOVED
    reaction: EmbeddedJson[Reaction]


class ChannelCreated(Event):
    kind: ClassVar[str] = EventKind.CHANNEL_CREATED
    channel_id: str
    team_id: str = ""


class ChannelUpdated(Event):
    kind: ClassVar[str] = EventKind.CHANNEL_UPDATED
    channel: EmbeddedJson[Channel]


class ChannelDeleted(Event):
    kind: ClassVar[str] = EventKind.CHANNEL_DELETED
    channel_id: str
    delete_at: MillisTimestamp = None


class ChannelViewed(Event):
    kind: ClassVar[str] = EventKind.CHANNEL_VIEWED
    channel_id: str


class ChannelMemberUpdated(Event):
    kind: ClassVar[str] = EventKind.CHANNEL_MEMBER_UPDATED
    channel_member: EmbeddedJson[ChannelMember] = Field(alias="channelMember")


class DirectAdded(Event):
    kind: ClassVar[str] = EventKind.DIRECT_ADDED
    teammate_id: str


class GroupAdded(Event):
    kind: ClassVar[str] = EventKind.GROUP_ADDED
    teammate_ids: EmbeddedJson[list[str]]


class NewUser(Event):
    kind: ClassVar[str] = EventKind.NEW_USER
    user_id: str


class UserAdded(Event):
    kind: ClassVar[str] = EventKind.USER_ADDED
    team_id: str
    user_id: str


class UserRemoved(Event):
    kind: ClassVar[str] = EventKind.USER_REMOVED
    remover_id: str = ""
    user_id: str


class UserUpdated(Event):
    kind: ClassVar[str] = EventKind.USER_UPDATED
    user: User


class UpdateTeam(Event):
    kind: ClassVar[str] = EventKind.UPDATE_TEAM
    team: EmbeddedJson[Team]


class DeleteTeam(Event):
    kind: ClassVar[str] = EventKind.DELETE_TEAM
    team: EmbeddedJson[Team]


class LeaveTeam(Event):
    kind: ClassVar[str] = EventKind.LEAVE_TEAM
    team_id: str
    user_id: str


class EmojiAdded(Event):
    kind: ClassVar[str] = EventKind.EMOJI_ADDED
    emoji: EmbeddedJson[Emoji]


class PreferencesChanged(Event):
    kind: ClassVar[str] = EventKind.PREFERENCES_CHANGED
    preferences: str


class PreferencesDeleted(Event):
    kind: ClassVar[str] = EventKind.PREFERENCES_DELETED
    preferences: str


class ConfigChanged(Event):
    kind: ClassVar[str] = EventKind.CONFIG_CHANGED
    config: dict[str, Any]


EVENT_TYPES: dict[str, type[Event]] = {
    cls.kind: cls
    for cls in (
        Hello, StatusChange, Typing,
        Posted, PostEdited, PostDeleted, EphemeralMessage,
        ReactionAdded, ReactionRemoved,
        ChannelCreated, ChannelUpdated, ChannelDeleted, ChannelViewed, ChannelMemberUpdated,
        DirectAdded, GroupAdded,
        NewUser, UserAdded, UserRemoved, UserUpdated,
        UpdateTeam, DeleteTeam, LeaveTeam,
        EmojiAdded,
        PreferencesChanged, PreferencesDeleted,
        ConfigChanged,
    )
}
