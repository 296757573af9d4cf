"""
Tests for the session table and peer addresses.
"""

import pytest

from session import Peer, PeerAddress, SessionTable


@pytest.fixture
def table():
    return SessionTable()


def test_add_is_idempotent(table):
    assert table.add(("10.0.0.1", 5001))
    assert not table.add(("10.0.0.1", 5001))

    assert table.size() == 1


def test_same_port_on_another_host_is_another_peer(table):
    table.add(("10.0.0.1", 5001))
    table.add(("10.0.0.2", 5001))

    assert len(table) == 2


def test_remove(table):
    table.add(("10.0.0.1", 5001))

    assert table.remove(("10.0.0.1", 5001))
    assert not table.remove(("10.0.0.1", 5001))
    assert not table.contains(("10.0.0.1", 5001))


def test_all_except_keeps_join_order(table):
    for port in (5003, 5001, 5002):
        table.add(("10.0.0.1", port))

    assert [a.port for a in table.all_except()] == [5003, 5001, 5002]
    assert [a.port for a in table.all_except(("10.0.0.1", 5001))] == \
        [5003, 5002]


def test_all_except_is_a_snapshot(table):
    table.add(("10.0.0.1", 5001))
    table.add(("10.0.0.1", 5002))

    snapshot = table.all_except()
    for address in snapshot:
        table.remove(address)

    assert len(snapshot) == 2
    assert table.size() == 0


def test_peers_record_join_time(table):
    table.add(("10.0.0.1", 5001))

    peer = table.get(("10.0.0.1", 5001))

    assert isinstance(peer, Peer)
    assert peer.identifier == 5001
    assert peer.joined_at > 0
    assert table.peers() == [peer]


def test_clear(table):
    table.add(("10.0.0.1", 5001))
    table.clear()

    assert table.size() == 0
    assert table.get(("10.0.0.1", 5001)) is None


def test_peer_address():
    address = PeerAddress.from_tuple(("::1", "5001", 0, 0))

    assert address == PeerAddress("::1", 5001)
    assert address.identifier == 5001
    assert PeerAddress.from_tuple(address) is address
    assert str(PeerAddress("10.0.0.1", 5001)) == "10.0.0.1:5001"


def test_same_port_on_two_hosts_shares_an_identifier(table):
    table.add(("10.0.0.1", 5001))
    table.add(("10.0.0.2", 5001))

    assert [p.identifier for p in table.peers()] == [5001, 5001]
