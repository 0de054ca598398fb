"""Pytest configuration and shared fixtures."""
import pytest

from chat_connection import ConnectionManager
from chat_store import MessageStore
from fakes import FakeConnector


@pytest.fixture
def store():
    return MessageStore()


@pytest.fixture
def make_manager(store):
    managers = []

    def _make(*results):
        connector = FakeConnector(*results)
        manager = ConnectionManager(store, connector=connector)
        managers.append(manager)
        return manager, connector

    yield _make
    for manager in managers:
        manager.close()
