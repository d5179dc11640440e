"""Tests for contract list filtering."""

import pytest

from archive.models import Contract, ContractStatus, Party
from client.search import ContractFilters, filter_contracts


@pytest.fixture
def contracts():
    return [
        Contract(
            id=1001,
            title="Sale of Car",
            type="بيع",
            party1=Party(name="Ali Salem", id_number="A-111"),
            party2=Party(name="Omar", id_number="B-222"),
            creation_date="2024-01-10",
            status=ContractStatus.FINAL,
        ),
        Contract(
            id=2002,
            title="عقد إيجار شقة",
            type="إيجار",
            party1=Party(name="سعاد", id_number="C-333"),
            creation_date="2024-03-01",
        ),
        Contract(
            id=3003,
            title="Old lease",
            type="إيجار",
            party1=Party(name="Huda"),
            creation_date="2023-05-05",
            is_archived=True,
        ),
    ]


def ids(result):
    return [contract.id for contract in result]


class TestFilterContracts:
    def test_defaults_hide_archived(self, contracts):
        assert ids(filter_contracts(contracts)) == [1001, 2002]

    def test_show_archived(self, contracts):
        assert ids(filter_contracts(contracts, ContractFilters(show_archived=True))) == [1001, 2002, 3003]

    def test_search_title_case_insensitive(self, contracts):
        assert ids(filter_contracts(contracts, ContractFilters(search="sale"))) == [1001]

    def test_search_by_id(self, contracts):
        assert ids(filter_contracts(contracts, ContractFilters(search="200"))) == [2002]

    def test_type_and_status(self, contracts):
        assert ids(filter_contracts(contracts, ContractFilters(type="إيجار"))) == [2002]
        assert ids(filter_contracts(contracts, ContractFilters(status=ContractStatus.FINAL))) == [1001]

    def test_party_name_matches_second_party(self, contracts):
        assert ids(filter_contracts(contracts, ContractFilters(party_name="omar"))) == [1001]

    def test_id_number(self, contracts):
        assert ids(filter_contracts(contracts, ContractFilters(id_number="333"))) == [2002]

    def test_date_range_inclusive(self, contracts):
        filters = ContractFilters(date_from="2024-01-10", date_to="2024-02-28", show_archived=True)
        assert ids(filter_contracts(contracts, filters)) == [1001]
