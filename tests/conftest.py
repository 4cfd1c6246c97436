import logging

import pytest

from voice_relay.config.settings import RelaySettings
from voice_relay.models.registry import SessionRegistry
from tests.fakes import FakeConnection, FakePlayer, TaggingTranscoder


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


@pytest.fixture
def transcoder():
    return TaggingTranscoder()


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def connection():
    return FakeConnection()


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def settings():
    return RelaySettings(api_key="test-api-key", agent_id="agent-123")
