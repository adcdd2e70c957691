from __future__ import annotations

import time

import pytest

from azdosync.adapters.memory import InMemoryObjectStore
from azdosync.config import ServiceArea
from azdosync.controllers import load_connection_config
from azdosync.domain.model import ObjectMeta, Secret
from azdosync.domain.reconciliation import (
    ConnectionConfigError,
    PassContext,
    ReferenceBinder,
    ReferenceResolver,
)
from tests.support.records import API_URL, FEEDS_URL, make_project, seed_connection


def _context(store: InMemoryObjectStore) -> PassContext:
    resolver = ReferenceResolver(store)
    return PassContext(
        resolver=resolver,
        binder=ReferenceBinder(resolver, make_project()),
        deadline=time.monotonic() + 30,
    )


def test_connection_settings_come_from_the_connector_and_its_secret(
    connected_store: InMemoryObjectStore,
) -> None:
    config = load_connection_config(make_project(), _context(connected_store))

    assert config.token == "pat-token"
    assert config.base_url(ServiceArea.DEFAULT) == API_URL
    assert config.base_url(ServiceArea.FEEDS) == FEEDS_URL
    assert config.verbose is False


def test_record_without_connector_reference_fails(connected_store: InMemoryObjectStore) -> None:
    project = make_project()
    project.spec.connector_config_ref = None

    with pytest.raises(ConnectionConfigError, match="does not reference a ConnectorConfig"):
        load_connection_config(project, _context(connected_store))


def test_missing_connector_fails(store: InMemoryObjectStore) -> None:
    with pytest.raises(ConnectionConfigError, match="Cannot load connection settings"):
        load_connection_config(make_project(), _context(store))


def test_missing_secret_fails(connected_store: InMemoryObjectStore) -> None:
    connected_store.delete(connected_store.get(Secret, "azure-pat", "default"))

    with pytest.raises(ConnectionConfigError, match="Cannot load connection settings"):
        load_connection_config(make_project(), _context(connected_store))


@pytest.mark.parametrize("data", [{}, {"token": "   "}, {"other": "x"}])
def test_blank_token_fails(store: InMemoryObjectStore, data: dict[str, str]) -> None:
    seed_connection(store)
    store.apply(Secret(metadata=ObjectMeta(name="azure-pat"), data=data))

    with pytest.raises(ConnectionConfigError, match="has no value under key 'token'"):
        load_connection_config(make_project(), _context(store))
