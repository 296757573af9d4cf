import pytest

from relay import RelayEngine

from relayhelpers import A, B, C, LOGIN, RecordingTransport


@pytest.fixture
def transport():
    return RecordingTransport()

@pytest.fixture
def engine(transport):
    return RelayEngine(transport)

@pytest.fixture
def joined(engine, transport):
    """ An engine with A, B and C logged in, in that order """
    for peer in (A, B, C):
        engine.handle(LOGIN, peer)

    transport.reset()

    return engine
