"""Frame decoding and encoding."""

import json

import pytest

from mm_signal.errors import DecodeError
from mm_signal.models.entities import ChannelType, PostType, Status
from mm_signal.models.envelope import Envelope, Reply
from mm_signal.models.events import (
    EVENT_TYPES,
    ChannelMemberUpdated,
    GroupAdded,
    Ignored,
    Posted,
    StatusChange,
)
from mm_signal.models.fields import WireFormat
from mm_signal.transport.codec import decode_frame, decode_message, encode_envelope, envelope_to_dict

POST = {
    "id": "p1",
    "create_at": 1700000000123,
    "update_at": 1700000000123,
    "edit_at": 0,
    "delete_at": 0,
    "is_pinned": False,
    "user_id": "U2",
    "channel_id": "C1",
    "root_id": "",
    "parent_id": "",
    "original_id": "",
    "message": "hello @me",
    "type": "",
    "props": {},
    "hashtags": "",
    "pending_post_id": "",
}
CHANNEL = {"id": "C1", "create_at": 1700000000000, "update_at": 1700000000000, "type": "O", "display_name": "Town Square"}
TEAM = {"id": "T1", "create_at": 1700000000000, "update_at": 1700000000000, "display_name": "Team", "name": "team"}
USER = {"id": "U2", "create_at": 1700000000000, "update_at": 1700000000000, "username": "alice", "roles": "system_user"}
REACTION = {"user_id": "U2", "post_id": "p1", "emoji_name": "smile", "create_at": 1700000000000}
EMOJI = {"id": "E1", "create_at": 1700000000000, "update_at": 1700000000000, "creator_id": "U2", "name": "party"}
MEMBER = {"channel_id": "C1", "user_id": "U1", "roles": "channel_user", "last_viewed_at": 1700000000000, "msg_count": 3}

SAMPLES = {
    "hello": {"server_version": "9.5.0"},
    "status_change": {"status": "dnd", "user_id": "U1"},
    "typing": {"parent_id": "", "user_id": "U2"},
    "posted": {
        "channel_display_name": "Town Square",
        "channel_name": "town-square",
        "channel_type": "O",
        "post": POST,
        "sender_name": "@alice",
        "team_id": "T1",
        "mentions": ["U1"],
    },
    "post_edited": {"post": POST},
    "post_deleted": {"post": POST},
    "ephemeral_message": {"post": POST},
    "reaction_added": {"reaction": REACTION},
    "reaction_removed": {"reaction": REACTION},
    "channel_created": {"channel_id": "C2", "team_id": "T1"},
    "channel_updated": {"channel": CHANNEL},
    "channel_deleted": {"channel_id": "C2", "delete_at": 1700000000000},
    "channel_viewed": {"channel_id": "C1"},
    "channel_member_updated": {"channelMember": MEMBER},
    "direct_added": {"teammate_id": "U2"},
    "group_added": {"teammate_ids": ["U2", "U3"]},
    "new_user": {"user_id": "U4"},
    "user_added": {"team_id": "T1", "user_id": "U4"},
    "user_removed": {"remover_id": "U2", "user_id": "U4"},
    "user_updated": {"user": USER},
    "update_team": {"team": TEAM},
    "delete_team": {"team": TEAM},
    "leave_team": {"team_id": "T1", "user_id": "U4"},
    "emoji_added": {"emoji": EMOJI},
    "preferences_changed": {"preferences": "[]"},
    "preferences_deleted": {"preferences": "[]"},
    "config_changed": {"config": {"SiteName": "Chat"}},
}


def frame(event, data, **extra):
    msg = {"event": event, "data": data, "broadcast": {"omit_users": None, "user_id": "", "channel_id": "", "team_id": ""}, "seq": 1}
    msg.update(extra)
    return json.dumps(msg)


def test_every_kind_has_a_sample():
    assert set(SAMPLES) == set(EVENT_TYPES)


@pytest.mark.parametrize("tag", sorted(SAMPLES))
def test_decode_every_kind(tag):
    envelope = decode_frame(frame(tag, SAMPLES[tag]))
    assert isinstance(envelope, Envelope)
    assert type(envelope.event) is EVENT_TYPES[tag]
    assert envelope.event.tag == tag
    assert decode_frame(encode_envelope(envelope)) == envelope


class TestPosted:
    def test_fields(self):
        envelope = decode_frame(frame("posted", SAMPLES["posted"], seq=7))
        event = envelope.event
        assert isinstance(event, Posted)
        assert event.channel_type is ChannelType.OPEN
        assert event.post.message == "hello @me"
        assert event.post.root_id is None
        assert event.mentions == ["U1"]
        assert envelope.seq == 7

    def test_embedded_and_nested_forms_decode_the_same(self):
        embedded = dict(SAMPLES["posted"], post=json.dumps(POST), mentions=json.dumps(["U1"]))
        assert decode_frame(frame("posted", embedded)) == decode_frame(frame("posted", SAMPLES["posted"]))

    def test_mentions_optional(self):
        data = {k: v for k, v in SAMPLES["posted"].items() if k != "mentions"}
        assert decode_frame(frame("posted", data)).event.mentions is None

    def test_invalid_embedded_post(self):
        data = dict(SAMPLES["posted"], post="{not json")
        with pytest.raises(DecodeError):
            decode_frame(frame("posted", data))

    def test_unknown_channel_type(self):
        data = dict(SAMPLES["posted"], channel_type="X")
        with pytest.raises(DecodeError) as exc:
            decode_frame(frame("posted", data))
        assert exc.value.details["errors"]

    def test_system_post(self):
        post = dict(POST, type=PostType.SYSTEM_JOIN_CHANNEL, message="alice joined the channel")
        event = decode_frame(frame("posted", dict(SAMPLES["posted"], post=post))).event
        assert event.post.type == PostType.SYSTEM_JOIN_CHANNEL
        assert event.post.is_system
        assert not decode_frame(frame("posted", SAMPLES["posted"])).event.post.is_system


class TestLegacyWireFormat:
    def test_seconds_and_embedded_strings_round_trip(self):
        post = dict(POST, create_at=1700000000, update_at=1700000000)
        data = dict(SAMPLES["posted"], post=json.dumps(post), mentions=json.dumps(["U1"]))
        envelope = decode_frame(frame("posted", data), wire=WireFormat.LEGACY)
        assert envelope.event.post.create_at.timestamp() == 1700000000

        encoded = envelope_to_dict(envelope, wire=WireFormat.LEGACY)
        assert isinstance(encoded["data"]["post"], str)
        assert json.loads(encoded["data"]["post"])["create_at"] == 1700000000
        assert json.loads(encoded["data"]["mentions"]) == ["U1"]
        assert decode_frame(json.dumps(encoded), wire=WireFormat.LEGACY) == envelope

    def test_group_added_ids(self):
        envelope = decode_frame(frame("group_added", {"teammate_ids": '["U2","U3"]'}), wire=WireFormat.LEGACY)
        assert isinstance(envelope.event, GroupAdded)
        assert envelope.event.teammate_ids == ["U2", "U3"]

    def test_current_format_writes_plain_objects(self):
        envelope = decode_frame(frame("posted", SAMPLES["posted"]))
        assert isinstance(envelope_to_dict(envelope)["data"]["post"], dict)


class TestUnknownEvents:
    def test_unknown_tag_is_ignored(self):
        envelope = decode_frame(frame("plugin_statuses_changed", {"anything": [1, 2, 3]}))
        assert isinstance(envelope.event, Ignored)
        assert envelope.event.tag == "plugin_statuses_changed"

    def test_ignored_encodes_with_its_tag(self):
        envelope = decode_frame(frame("license_changed", {"license": {}}))
        encoded = envelope_to_dict(envelope)
        assert encoded["event"] == "license_changed"
        assert encoded["data"] == {}

    def test_missing_data_and_broadcast(self):
        envelope = decode_frame('{"event": "custom"}')
        assert isinstance(envelope.event, Ignored)
        assert envelope.broadcast.omit_users is None
        assert envelope.seq == 0


class TestBroadcast:
    def test_omit_users(self):
        raw = json.loads(frame("status_change", SAMPLES["status_change"]))
        raw["broadcast"]["omit_users"] = {"U1": True}
        envelope = decode_message(raw)
        assert isinstance(envelope.event, StatusChange)
        assert envelope.event.status is Status.DND
        assert envelope.broadcast.omits("U1")
        assert not envelope.broadcast.omits("U2")
        assert not envelope.broadcast.omits(None)


def test_channel_member_alias():
    envelope = decode_frame(frame("channel_member_updated", SAMPLES["channel_member_updated"]))
    assert isinstance(envelope.event, ChannelMemberUpdated)
    assert envelope.event.channel_member.roles == {"channel_user"}
    assert "channelMember" in envelope_to_dict(envelope)["data"]


class TestReplies:
    def test_ok(self):
        reply = decode_frame('{"status": "OK", "seq_reply": 1}')
        assert isinstance(reply, Reply)
        assert reply.ok

    def test_failure(self):
        reply = decode_frame('{"status": "FAIL", "seq_reply": 1, "error": {"id": "api.web_socket_router.not_authenticated.app_error"}}')
        assert not reply.ok
        assert reply.error["id"].startswith("api.web_socket_router")


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[1, 2]",
        '"hello"',
        "{}",
        '{"status": "OK"}',
        '{"event": 42, "data": {}}',
        '{"event": "posted", "data": "oops"}',
        '{"event": "status_change", "data": {"user_id": "U1"}}',
        '{"event": "status_change", "data": {"status": "sleeping", "user_id": "U1"}}',
    ],
)
def test_invalid_frames(text):
    with pytest.raises(DecodeError):
        decode_frame(text)


class TestDeepNesting:
    def test_frame(self):
        text = '{"event":"posted","data":{"post":' + "[" * 100000 + "]" * 100000 + "}}"
        with pytest.raises(DecodeError):
            decode_frame(text)

    def test_embedded_post(self):
        data = dict(SAMPLES["posted"], post="[" * 100000 + "]" * 100000)
        with pytest.raises(DecodeError):
            decode_frame(frame("posted", data))
