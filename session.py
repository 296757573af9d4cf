"""
session.py

Tracks which peers are currently part of the shared session. The table is
shared between the relay's request threads and the observer, so every
method takes the table's lock and anything handed out is a snapshot.

A peer is identified purely by the address its datagrams come from. If a
peer's address changes mid-session it is treated as a brand new peer.
"""

import collections
import threading
import time


class PeerAddress(collections.namedtuple("PeerAddress", ["host", "port"])):
    """
    The (host, port) a peer sends from. Being a tuple, it can be handed
    straight to `socket.sendto`.
    """
    __slots__ = ()

    @classmethod
    def from_tuple(cls, address):
        """
        Builds a PeerAddress from whatever the socket layer gave us. IPv6
        addresses come with extra flowinfo/scope fields which we ignore.
        """
        if isinstance(address, cls):
            return address

        return cls(address[0], int(address[1]))

    @property
    def identifier(self):
        """
        The id other peers know this peer by. Only the port is used, so two
        peers on different hosts that send from the same port share an id.
        """
        return self.port

    def __str__(self):
        return "%s:%d" % (self.host, self.port)


class Peer(object):
    """
    A simple data object retaining membership information for a peer.
    """
    def __init__(self, address, joined_at=None):
        self.address = address

        if joined_at is None:
            self.joined_at = time.time()
        else:
            self.joined_at = joined_at

    @property
    def identifier(self):
        return self.address.identifier

    def __repr__(self):
        return "Peer(%s, joined_at=%.3f)" % (self.address, self.joined_at)


class SessionTable(object):
    """
    The membership set for the relay. A PeerAddress appears at most once.
    Peers are kept in the order they joined.
    """
    def __init__(self):
        self._peers = collections.OrderedDict()

        self.lock = threading.RLock()

    def add(self, address):
        """
        Adds a peer to the session.

        :param address The PeerAddress of the joining peer

        :return True if the peer was added, False if it was already a member
        """
        address = PeerAddress.from_tuple(address)

        with self.lock:
            if address in self._peers:
                return False

            self._peers[address] = Peer(address)

            return True

    def remove(self, address):
        """
        Removes a peer from the session.

        :return True if the peer was removed, False if it was not a member
        """
        address = PeerAddress.from_tuple(address)

        with self.lock:
            return self._peers.pop(address, None) is not None

    def contains(self, address):
        with self.lock:
            return PeerAddress.from_tuple(address) in self._peers

    def get(self, address):
        with self.lock:
            return self._peers.get(PeerAddress.from_tuple(address))

    def all_except(self, address=None):
        """
        Gets the addresses of every member other than `address`. Passing None
        gets every member.

        :return A new list, safe to iterate while the table changes
        """
        if address is not None:
            address = PeerAddress.from_tuple(address)

        with self.lock:
            return [a for a in self._peers if a != address]

    def peers(self):
        with self.lock:
            return list(self._peers.values())

    def size(self):
        with self.lock:
            return len(self._peers)

    def clear(self):
        with self.lock:
            self._peers.clear()

    def __contains__(self, address):
        return self.contains(address)

    def __len__(self):
        return self.size()
