"""
messages.py

Encodes and decodes the datagrams exchanged between the relay and its peers.
Every datagram is a UTF-8 JSON object with an "event" field naming the kind
of message, e.g.:

    {"event": "login_order"}
    {"event": "playerState_order", "condition": 2, "id": 0,
     "positionX": 1.0, "positionY": 2.0, "positionZ": 0.0, "rotationZ": 90.0}

The kind is only ever taken from "event", so a state update can never be
mistaken for a control message no matter what else it contains.
"""

import enum
import math

import tornado.escape


class DecodeError(Exception):
    """ Raised when a datagram cannot be turned into a message """
    pass

class MalformedMessageError(DecodeError):
    """ Raised when a datagram does not have the shape of a known message """
    pass


class Condition(enum.IntEnum):
    """ Who a player state update is delivered to """
    BROADCAST = 0
    OWNER_ONLY = 1
    BROADCAST_EXCEPT_OWNER = 2


class Message(object):
    """
    Base class for all messages. Subclasses set `event` and implement
    `fields` (for encoding) and `from_fields` (for decoding).
    """
    event = None

    def fields(self):
        return {}

    @classmethod
    def from_fields(cls, obj):
        return cls()

    def __eq__(self, other):
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def __ne__(self, other):
        return not self == other

    def __repr__(self):
        args = ", ".join("%s=%r" % kv for kv in sorted(self.__dict__.items()))
        return "%s(%s)" % (type(self).__name__, args)


class Login(Message):
    """
    Sent by a peer to join the session. The relay answers with a Login
    carrying the joiner's id and the ids of everyone already there.
    """
    event = "login_order"

    def __init__(self, player_id=None, players=None):
        self.player_id = player_id
        self.players = players

    def fields(self):
        out = {}
        if self.player_id is not None:
            out["id"] = self.player_id
        if self.players is not None:
            out["players"] = list(self.players)
        return out

    @classmethod
    def from_fields(cls, obj):
        return cls(_get_int(obj, "id", required=False),
                   _get_int_list(obj, "players"))


class Logout(Message):
    """
    Sent by a peer to leave. The relay tells the remaining peers who left.
    """
    event = "logout_order"

    def __init__(self, player=None):
        self.player = player

    def fields(self):
        if self.player is None:
            return {}
        return {"player": self.player}

    @classmethod
    def from_fields(cls, obj):
        return cls(_get_int(obj, "player", required=False))


class Register(Message):
    """ Tells existing peers that a new peer has joined """
    event = "register_order"

    def __init__(self, player):
        self.player = player

    def fields(self):
        return {"player": self.player}

    @classmethod
    def from_fields(cls, obj):
        return cls(_get_int(obj, "player"))


class PlayerState(Message):
    event = "playerState_order"

    def __init__(self, condition, owner_id=0, position_x=0.0, position_y=0.0,
                 position_z=0.0, rotation_z=0.0):
        self.condition = Condition(condition)
        self.owner_id = owner_id
        self.position_x = position_x
        self.position_y = position_y
        self.position_z = position_z
        self.rotation_z = rotation_z

    def with_owner(self, owner_id):
        """
        Gets a copy of this state stamped with the given owner id. The relay
        uses this to replace whatever id the sender claimed.
        """
        return PlayerState(self.condition, owner_id, self.position_x,
                           self.position_y, self.position_z, self.rotation_z)

    def fields(self):
        return {
            "condition": int(self.condition),
            "id": self.owner_id,
            "positionX": self.position_x,
            "positionY": self.position_y,
            "positionZ": self.position_z,
            "rotationZ": self.rotation_z,
        }

    @classmethod
    def from_fields(cls, obj):
        condition = _get_int(obj, "condition")

        try:
            condition = Condition(condition)
        except ValueError:
            raise MalformedMessageError("Unknown condition %r" % condition)

        owner_id = _get_int(obj, "id", required=False)

        return cls(condition,
                   0 if owner_id is None else owner_id,
                   _get_float(obj, "positionX"),
                   _get_float(obj, "positionY"),
                   _get_float(obj, "positionZ"),
                   _get_float(obj, "rotationZ"))


class AdminNotice(Message):
    """
    Free text typed by the operator at the relay console. Only the relay
    ever sends these.
    """
    event = "admin_order"

    def __init__(self, text):
        self.text = text

    def fields(self):
        return {"text": self.text}

    @classmethod
    def from_fields(cls, obj):
        text = obj.get("text")
        if not isinstance(text, str):
            raise MalformedMessageError("Field 'text' must be a string")
        return cls(text)


MESSAGE_TYPES = dict(
    (cls.event, cls) for cls in (Login, Logout, Register, PlayerState,
                                 AdminNotice)
)


def _is_int(value):
    # bool is an int subclass, but true/false are never valid ids
    return isinstance(value, int) and not isinstance(value, bool)

def _get_int(obj, key, required=True):
    value = obj.get(key)

    if value is None:
        if required:
            raise MalformedMessageError("Missing field '%s'" % key)
        return None

    if not _is_int(value):
        raise MalformedMessageError("Field '%s' must be an integer" % key)

    return value

def _get_int_list(obj, key):
    value = obj.get(key)

    if value is None:
        return None

    if not isinstance(value, list) or not all(_is_int(v) for v in value):
        raise MalformedMessageError(
            "Field '%s' must be a list of integers" % key)

    return value

def _get_float(obj, key):
    value = obj.get(key, 0.0)

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedMessageError("Field '%s' must be a number" % key)

    try:
        value = float(value)
    except OverflowError:
        raise MalformedMessageError("Field '%s' is out of range" % key)

    if not math.isfinite(value):
        raise MalformedMessageError("Field '%s' must be finite" % key)

    return value


def decode(payload):
    """
    Turns a raw datagram into a message.

    :param payload The datagram bytes

    :return An instance of one of the Message subclasses

    :raises MalformedMessageError When the payload is not a known message
    """
    if not payload:
        raise MalformedMessageError("Empty payload")

    try:
        obj = tornado.escape.json_decode(payload)
    except (ValueError, RecursionError) as e:
        # ValueError covers both bad JSON and bad UTF-8
        raise MalformedMessageError("Payload is not JSON: %s" % e)

    if not isinstance(obj, dict):
        raise MalformedMessageError("Payload is not a JSON object")

    event = obj.get("event")
    if not isinstance(event, str) or event not in MESSAGE_TYPES:
        raise MalformedMessageError("Unknown event %r" % (event,))

    return MESSAGE_TYPES[event].from_fields(obj)


def encode(message):
    """
    Turns a message into datagram bytes.
    """
    obj = {"event": message.event}
    obj.update(message.fields())

    return tornado.escape.json_encode(obj).encode("utf-8")
