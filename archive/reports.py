"""Dashboard and report aggregations over the contract list.

Pure read-side projections: nothing here touches storage. Callers pass
decoded ``Contract`` structs (see ``archive.models.from_documents``).
"""

from collections import Counter, OrderedDict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from msgspec import Struct

from archive.models import Contract, ContractStatus, ContractTypeDefinition


EXPIRY_WINDOW_DAYS = 30


class CountItem(Struct):
    name: str
    count: int
    proportion: float = 0.0


class DashboardStats(Struct):
    total: int
    this_month: int
    expiring_soon: int
    by_type: List[CountItem]


class ReportSummary(Struct):
    total: int
    by_type: List[CountItem]
    by_status: List[CountItem]
    total_value: float
    average_value: float


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse the date part of an ISO date/datetime string, or None."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _with_proportions(counts: Iterable[tuple], total: int) -> List[CountItem]:
    return [
        CountItem(name=name, count=count, proportion=(count / total if total else 0.0))
        for name, count in counts
    ]


def is_expiring_soon(contract: Contract, today: date, window_days: int = EXPIRY_WINDOW_DAYS) -> bool:
    """Final contracts whose end date falls in (today, today + window]."""
    if contract.status != ContractStatus.FINAL:
        return False
    end = parse_date(contract.end_date)
    if end is None:
        return False
    return today < end <= today + timedelta(days=window_days)


def monthly_counts(contracts: Sequence[Contract]) -> Dict[str, int]:
    """Contracts per creation month, keyed ``YYYY-MM`` in chronological order."""
    counter = Counter()
    for contract in contracts:
        created = parse_date(contract.creation_date)
        if created is not None:
            counter[f"{created.year:04d}-{created.month:02d}"] += 1
    return OrderedDict(sorted(counter.items()))


def dashboard_stats(contracts: Sequence[Contract], today: Optional[date] = None) -> DashboardStats:
    """Headline numbers for the dashboard.

    Args:
        contracts: Every contract in memory
        today: Reference date (defaults to the local date)

    Returns:
        DashboardStats with total, this-month, expiring-soon and per-type counts
    """
    today = today or date.today()

    this_month = 0
    for contract in contracts:
        created = parse_date(contract.creation_date)
        if created is not None and (created.year, created.month) == (today.year, today.month):
            this_month += 1

    expiring = sum(1 for contract in contracts if is_expiring_soon(contract, today))

    # insertion order of first appearance, like the chart legend
    type_counts = Counter(contract.type for contract in contracts)

    return DashboardStats(
        total=len(contracts),
        this_month=this_month,
        expiring_soon=expiring,
        by_type=_with_proportions(type_counts.items(), len(contracts)),
    )


def report_summary(
    contracts: Sequence[Contract],
    contract_types: Sequence[ContractTypeDefinition]
) -> ReportSummary:
    """Aggregates for the reports page.

    Types are taken from the defined contract types (sorted by count,
    descending); statuses always list every status, even at zero.
    """
    total = len(contracts)
    type_counts = Counter(contract.type for contract in contracts)
    status_counts = Counter(contract.status for contract in contracts)

    by_type = sorted(
        ((definition.name, type_counts.get(definition.name, 0)) for definition in contract_types),
        key=lambda item: item[1],
        reverse=True,
    )
    by_status = [(status.value, status_counts.get(status, 0)) for status in ContractStatus]

    total_value = float(sum(contract.value for contract in contracts))

    return ReportSummary(
        total=total,
        by_type=_with_proportions(by_type, total),
        by_status=_with_proportions(by_status, total),
        total_value=total_value,
        average_value=total_value / total if total else 0.0,
    )
