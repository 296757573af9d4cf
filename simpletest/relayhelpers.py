"""
Helpers shared by the relay tests. Peers are plain (host, port) tuples, and
the recording transport keeps what the engine sends instead of touching the
network.
"""

import json

import messages


A = ("10.0.0.1", 5001)
B = ("10.0.0.2", 5002)
C = ("10.0.0.3", 5003)


class RecordingTransport(object):
    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def send(self, data, address):
        if tuple(address) in self.fail_for:
            raise ConnectionRefusedError("unreachable")

        self.sent.append((tuple(address), messages.decode(data)))

    def to(self, address):
        return [m for a, m in self.sent if a == address]

    def recipients(self):
        return set(a for a, m in self.sent)

    def reset(self):
        del self.sent[:]


def payload(event, **fields):
    obj = {"event": event}
    obj.update(fields)
    return json.dumps(obj).encode("utf-8")


def state(condition, **fields):
    return payload("playerState_order", condition=condition, **fields)


LOGIN = payload("login_order")
LOGOUT = payload("logout_order")
