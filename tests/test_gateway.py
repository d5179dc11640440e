"""Tests for the persistence gateway against the real API."""

import json

import pytest

from client.gateway import ERROR, SAVED, SAVING, PersistenceGateway


class BrokenSession:
    def get(self, url, **kwargs):
        raise ConnectionError("server down")

    def post(self, url, **kwargs):
        raise ConnectionError("server down")


@pytest.fixture
def gateway(client):
    return PersistenceGateway(base_url="http://testserver/api", session=client, timeout=None)


@pytest.fixture
def offline_gateway():
    return PersistenceGateway(base_url="http://localhost:1/api", session=BrokenSession())


class TestOnline:
    def test_health(self, gateway):
        assert gateway.check_health() is True

    def test_save_then_load(self, gateway):
        statuses = []
        assert gateway.save("users", [{"id": 1, "name": "a"}], statuses.append)

        assert statuses == [SAVING, SAVED]
        assert gateway.load("users", []) == [{"id": 1, "name": "a"}]

    def test_empty_collection_gives_default(self, gateway):
        default = [{"id": 1, "name": "seed"}]
        assert gateway.load("users", default) is default

    def test_non_list_sent_as_empty(self, gateway):
        gateway.save("users", [{"id": 1}])
        assert gateway.save("users", {"id": 2})
        assert gateway.load("users", None) is None

    def test_invalid_collection(self, gateway):
        statuses = []
        assert gateway.load("secrets", "fallback") == "fallback"
        assert not gateway.save("secrets", [], statuses.append)
        assert statuses == [SAVING, ERROR]

    def test_backup_round_trip(self, gateway):
        gateway.save("contract_types", [{"id": 3, "name": "بيع"}])
        backup = gateway.create_backup()

        assert json.loads(backup)["contract_types"] == [{"id": 3, "name": "بيع"}]
        assert "بيع" in backup

        gateway.save("contract_types", [])
        assert gateway.restore_backup(backup)
        assert gateway.load("contract_types", []) == [{"id": 3, "name": "بيع"}]

    def test_metrics(self, gateway):
        assert gateway.fetch_status_metrics()["segments"] == 96
        assert gateway.fetch_db_metrics()["connected"] is True


class TestOffline:
    def test_load_falls_back(self, offline_gateway):
        assert offline_gateway.load("contracts", []) == []

    def test_save_reports_error(self, offline_gateway):
        statuses = []
        assert offline_gateway.save("contracts", [], statuses.append) is False
        assert statuses == [SAVING, ERROR]

    def test_health_raises(self, offline_gateway):
        with pytest.raises(ConnectionError):
            offline_gateway.check_health()

    def test_backup_and_metrics(self, offline_gateway):
        assert offline_gateway.create_backup() == "{}"
        assert not offline_gateway.restore_backup("{}")
        assert not offline_gateway.restore_backup("not json")
        assert offline_gateway.fetch_status_metrics() is None
        assert offline_gateway.fetch_db_metrics() is None
