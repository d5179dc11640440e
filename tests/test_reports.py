"""Tests for dashboard and report aggregations."""

from datetime import date

import pytest

from archive.models import Contract, ContractStatus, ContractTypeDefinition, Party
from archive.reports import (
    dashboard_stats,
    is_expiring_soon,
    monthly_counts,
    parse_date,
    report_summary,
)


def make_contract(**kwargs) -> Contract:
    kwargs.setdefault("party1", Party(name="طرف"))
    return Contract(**kwargs)


TODAY = date(2024, 6, 15)


class TestParseDate:
    def test_values(self):
        assert parse_date("2024-06-15") == TODAY
        assert parse_date("2024-06-15T10:00:00.000Z") == TODAY
        assert parse_date("") is None
        assert parse_date(None) is None
        assert parse_date("15/06/2024") is None


class TestExpiringSoon:
    @pytest.mark.parametrize(
        "end_date,status,expected",
        [
            ("2024-06-20", ContractStatus.FINAL, True),
            ("2024-07-15", ContractStatus.FINAL, True),
            ("2024-07-16", ContractStatus.FINAL, False),
            ("2024-06-15", ContractStatus.FINAL, False),
            ("2024-06-01", ContractStatus.FINAL, False),
            ("2024-06-20", ContractStatus.DRAFT, False),
            (None, ContractStatus.FINAL, False),
        ],
    )
    def test_window(self, end_date, status, expected):
        contract = make_contract(end_date=end_date, status=status)
        assert is_expiring_soon(contract, TODAY) is expected


class TestDashboardStats:
    def test_counts(self):
        contracts = [
            make_contract(type="بيع", creation_date="2024-06-01", status=ContractStatus.FINAL, end_date="2024-07-01"),
            make_contract(type="بيع", creation_date="2024-05-30"),
            make_contract(type="إيجار", creation_date="2023-06-10"),
        ]
        stats = dashboard_stats(contracts, TODAY)

        assert stats.total == 3
        assert stats.this_month == 1
        assert stats.expiring_soon == 1
        assert [(item.name, item.count) for item in stats.by_type] == [("بيع", 2), ("إيجار", 1)]
        assert stats.by_type[0].proportion == pytest.approx(2 / 3)

    def test_empty(self):
        stats = dashboard_stats([], TODAY)
        assert stats.total == 0
        assert stats.by_type == []


class TestMonthlyCounts:
    def test_chronological(self):
        contracts = [
            make_contract(creation_date="2024-03-02"),
            make_contract(creation_date="2023-12-31"),
            make_contract(creation_date="2024-03-20"),
            make_contract(creation_date=""),
        ]
        assert list(monthly_counts(contracts).items()) == [("2023-12", 1), ("2024-03", 2)]


class TestReportSummary:
    def test_summary(self):
        types = [ContractTypeDefinition(name="إيجار"), ContractTypeDefinition(name="بيع")]
        contracts = [
            make_contract(type="بيع", value=1000, status=ContractStatus.FINAL),
            make_contract(type="بيع", value=3000),
            make_contract(type="وكالة", value=2000),
        ]
        summary = report_summary(contracts, types)

        assert summary.total == 3
        assert [(i.name, i.count) for i in summary.by_type] == [("بيع", 2), ("إيجار", 0)]
        assert [i.name for i in summary.by_status] == [s.value for s in ContractStatus]
        assert summary.by_status[0].count == 2
        assert summary.by_status[1].count == 1
        assert summary.total_value == 6000
        assert summary.average_value == 2000

    def test_empty(self):
        summary = report_summary([], [])
        assert summary.average_value == 0.0
        assert all(item.count == 0 for item in summary.by_status)
