import pytest

from helpers import Callbacks, RecordingStore, StubTransmitter


@pytest.fixture
def callbacks():
    return Callbacks()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def transmitter():
    return StubTransmitter()
