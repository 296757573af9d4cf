"""
Tests for the wire format.
"""

import json

import pytest

import messages
from messages import (
    AdminNotice, Condition, Login, Logout, MalformedMessageError, PlayerState,
    Register
)


def decode_json(message):
    return json.loads(messages.encode(message).decode("utf-8"))


def test_login_from_client():
    assert messages.decode(b'{"event": "login_order"}') == Login()

def test_login_ack_wire_format():
    assert decode_json(Login(5001, [5002, 5003])) == {
        "event": "login_order", "id": 5001, "players": [5002, 5003]}

def test_empty_login_ack_keeps_player_list():
    assert decode_json(Login(5001, [])) == {
        "event": "login_order", "id": 5001, "players": []}

def test_client_logout_has_no_player():
    assert decode_json(Logout()) == {"event": "logout_order"}

def test_register_wire_format():
    assert decode_json(Register(5002)) == {
        "event": "register_order", "player": 5002}

def test_player_state_wire_format():
    state = PlayerState(Condition.OWNER_ONLY, 5001, 1.0, 2.5, -3.0, 180.0)

    assert decode_json(state) == {
        "event": "playerState_order",
        "condition": 1,
        "id": 5001,
        "positionX": 1.0,
        "positionY": 2.5,
        "positionZ": -3.0,
        "rotationZ": 180.0,
    }

@pytest.mark.parametrize("message", [
    Login(), Login(5001, [5002]), Logout(), Logout(5001), Register(5001),
    PlayerState(Condition.BROADCAST_EXCEPT_OWNER, 5001, 0.1, 0.2, 0.3, 0.4),
    AdminNotice("hello </script>"),
])
def test_messages_survive_the_wire(message):
    assert messages.decode(messages.encode(message)) == message

def test_player_state_defaults():
    state = messages.decode(b'{"event": "playerState_order", "condition": 0}')

    assert state == PlayerState(Condition.BROADCAST, 0, 0.0, 0.0, 0.0, 0.0)

def test_integer_positions_become_floats():
    state = messages.decode(
        b'{"event": "playerState_order", "condition": 0, "positionX": 3}')

    assert state.position_x == 3.0
    assert isinstance(state.position_x, float)

def test_with_owner_leaves_original_alone():
    state = PlayerState(Condition.BROADCAST, 1, 1.0, 2.0, 3.0, 4.0)

    stamped = state.with_owner(5001)

    assert stamped.owner_id == 5001
    assert state.owner_id == 1
    assert stamped.position_z == 3.0


@pytest.mark.parametrize("raw", [
    b"",
    b"login",
    b"logout",
    b"\xc3\x28",
    b"null",
    b'"login_order"',
    b"[]",
    b"{}",
    b'{"event": 1}',
    b'{"event": "teleport_order"}',
    b'{"event": "playerState_order"}',
    b'{"event": "playerState_order", "condition": 3}',
    b'{"event": "playerState_order", "condition": true}',
    b'{"event": "playerState_order", "condition": 0, "id": "me"}',
    b'{"event": "playerState_order", "condition": 0, "positionX": "1"}',
    b'{"event": "playerState_order", "condition": 0, "rotationZ": NaN}',
    b'{"event": "playerState_order", "condition": 0, "positionY": false}',
    b'{"event": "register_order"}',
    b'{"event": "login_order", "players": [1, "2"]}',
    b'{"event": "admin_order", "text": 5}',
    b"[" * 5000,
    b'{"event": "playerState_order", "condition": 0, "positionX": 1'
        + b"0" * 400 + b"}",
])
def test_malformed_payloads(raw):
    with pytest.raises(MalformedMessageError):
        messages.decode(raw)
