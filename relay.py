"""
relay.py

The relay engine is the heart of the daemon. Every datagram a peer sends is
handed to `RelayEngine.handle`, which works out what kind of message it is,
updates the session and forwards whatever needs forwarding to the other
peers.

Peers log in, stream player state updates and log out. A state update
carries a condition saying who should see it: everyone, only the sender, or
everyone but the sender. The relay always stamps state updates with the
sender's own id, so a peer cannot pretend to be somebody else.

Delivery is best effort. A send that fails is logged and skipped, and
nothing is ever retried.
"""

import collections
import logging
import threading

import messages
from messages import (
    AdminNotice, Condition, DecodeError, Login, Logout, PlayerState, Register
)
from session import PeerAddress, SessionTable


Delivery = collections.namedtuple("Delivery", ["address", "message"])


class SendFailure(Exception):
    """ Raised (and reported) when a message cannot be sent to a peer """
    def __init__(self, address, message, cause):
        super(SendFailure, self).__init__(
            "Failed to send %s to %s: %s" % (
                type(message).__name__, address, cause))

        self.address = address
        self.message = message
        self.cause = cause


class RelayEngine(object):
    """
    The engine is called from one thread per datagram. Each `handle` call
    holds the engine lock from decoding until the last send, so membership
    changes and the fan-out they cause are never interleaved.
    """
    def __init__(self, transport, table=None):
        """
        :param transport An object with a `send(data, address)` method
        :param table The SessionTable to use. A new one is made if None.
        """
        self.transport = transport

        if table is None:
            table = SessionTable()
        self.table = table

        self.lock = threading.Lock()

        self._counters = collections.Counter()

        self._handlers = {
            Login: self._on_login,
            Logout: self._on_logout,
            PlayerState: self._on_player_state,
        }

    def handle(self, payload, source):
        """
        Handles a single datagram.

        :param payload The raw datagram bytes
        :param source The (host, port) the datagram came from

        :return A list of Delivery tuples, one per send attempted
        """
        source = PeerAddress.from_tuple(source)

        with self.lock:
            self._counters["received"] += 1

            try:
                message = messages.decode(payload)

            except DecodeError as e:
                self._drop(source, e)
                return []

            handler = self._handlers.get(type(message))

            if handler is None:
                # Register and admin notices only ever come from the relay
                self._drop(source, "%s is not accepted from peers" % (
                    type(message).__name__,))
                return []

            deliveries = handler(message, source)

            self._send_all(deliveries)

            return deliveries

    def broadcast_admin(self, text):
        """
        Sends a line of operator text to every peer in the session. This is
        not part of the peer protocol; peers receive it as an AdminNotice.
        """
        with self.lock:
            notice = AdminNotice(text)

            deliveries = [Delivery(a, notice) for a in self.table.all_except()]

            logging.info("Broadcasting admin notice to %d peer(s)",
                len(deliveries))

            self._send_all(deliveries)

            return deliveries

    def stats(self):
        with self.lock:
            out = dict((k, self._counters[k]) for k in
                       ("received", "dropped", "sent", "send_failures"))

        out["peers"] = self.table.size()

        return out

    def close(self):
        with self.lock:
            self.table.clear()

    def _drop(self, source, reason):
        self._counters["dropped"] += 1

        logging.warning("Dropped datagram from %s: %s", source, reason)

    def _on_login(self, message, source):
        # Captured before the add so the joiner is not announced to itself
        existing = self.table.all_except(source)

        if not self.table.add(source):
            logging.debug("%s is already logged in, ignoring", source)
            return []

        logging.info("%d -> login | total peers: %d",
            source.identifier, self.table.size())

        ack = Login(source.identifier, [a.identifier for a in existing])

        # Existing peers hear about the joiner before the joiner is acked
        register = Register(source.identifier)
        deliveries = [Delivery(a, register) for a in existing]
        deliveries.append(Delivery(source, ack))

        return deliveries

    def _on_logout(self, message, source):
        if not self.table.remove(source):
            logging.debug("%s is not logged in, ignoring logout", source)
            return []

        logging.info("%d -> logout | total peers: %d",
            source.identifier, self.table.size())

        notice = Logout(source.identifier)

        return [Delivery(a, notice) for a in self.table.all_except(source)]

    def _on_player_state(self, message, source):
        if source not in self.table:
            # State from peers that never logged in is still relayed
            logging.debug("Relaying state from %s, which is not logged in",
                source)

        state = message.with_owner(source.identifier)

        if state.condition == Condition.OWNER_ONLY:
            targets = [source]
        elif state.condition == Condition.BROADCAST_EXCEPT_OWNER:
            targets = self.table.all_except(source)
        else:
            targets = self.table.all_except()

        return [Delivery(a, state) for a in targets]

    def _send_all(self, deliveries):
        """
        Sends every delivery. Each message is encoded once no matter how many
        peers it goes to.
        """
        encoded = {}

        for address, message in deliveries:
            data = encoded.get(id(message))
            if data is None:
                data = encoded[id(message)] = messages.encode(message)

            try:
                self.transport.send(data, address)

            except OSError as e:
                self._report(SendFailure(address, message, e))

            else:
                self._counters["sent"] += 1

    def _report(self, failure):
        self._counters["send_failures"] += 1

        logging.warning("%s", failure)
