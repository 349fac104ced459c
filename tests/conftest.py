# tests/conftest.py
from unittest.mock import MagicMock

import pytest
from pymongo.errors import AutoReconnect, ConfigurationError

from mongo_driver import MongoWrapper


class FakeClientFactory:
    """Stands in for pymongo.MongoClient; records every client it builds."""

    def __init__(self):
        self.calls = []
        self.clients = []
        self.fail_with = None

    def __call__(self, uri, **kwargs):
        self.calls.append((uri, kwargs))
        if self.fail_with is not None:
            raise self.fail_with
        client = MagicMock(name=f"client{len(self.clients)}")
        col = client.__getitem__.return_value.__getitem__.return_value
        col.name = "items"
        self.clients.append(client)
        return client

    @property
    def latest(self):
        return self.clients[-1]


@pytest.fixture()
def factory(monkeypatch):
    fake = FakeClientFactory()
    monkeypatch.setattr("mongo_driver.connection.MongoClient", fake)
    return fake


@pytest.fixture()
def mongo(factory):
    wrapper = MongoWrapper("u", "p", "@cluster0.example.net/test")
    wrapper.connect()
    wrapper.set_database("test")
    wrapper.set_collection("items")
    return wrapper


@pytest.fixture()
def col(mongo):
    return mongo.col


@pytest.fixture()
def server_down(factory, mongo):
    """Ping fails and so does the reconnect."""
    mongo.client.admin.command.side_effect = AutoReconnect("no primary")
    factory.fail_with = ConfigurationError("SRV lookup failed")
    return mongo
