"""Contract list filtering for the contracts page."""

from typing import List, Optional, Sequence

from msgspec import Struct

from archive.models import Contract, ContractStatus


class ContractFilters(Struct, kw_only=True):
    """Search box plus the advanced filter panel. Empty means "any"."""
    search: str = ""
    type: str = ""
    status: Optional[ContractStatus] = None
    show_archived: bool = False
    party_name: str = ""
    id_number: str = ""
    date_from: str = ""  # YYYY-MM-DD, inclusive
    date_to: str = ""


def _party_names(contract: Contract) -> List[str]:
    names = [contract.party1.name]
    if contract.party2 is not None:
        names.append(contract.party2.name)
    return names


def _party_id_numbers(contract: Contract) -> List[str]:
    numbers = [contract.party1.id_number]
    if contract.party2 is not None:
        numbers.append(contract.party2.id_number)
    return numbers


def matches(contract: Contract, filters: ContractFilters) -> bool:
    """Whether one contract passes every active filter."""
    if filters.search:
        term = filters.search.lower()
        if term not in contract.title.lower() and filters.search not in str(contract.id):
            return False

    if filters.type and contract.type != filters.type:
        return False

    if filters.status is not None and contract.status != filters.status:
        return False

    if not filters.show_archived and contract.is_archived:
        return False

    if filters.party_name:
        name = filters.party_name.lower()
        if not any(name in party.lower() for party in _party_names(contract)):
            return False

    if filters.id_number:
        if not any(filters.id_number in number for number in _party_id_numbers(contract)):
            return False

    # ISO dates compare correctly as strings
    if filters.date_from and contract.creation_date < filters.date_from:
        return False
    if filters.date_to and contract.creation_date > filters.date_to:
        return False

    return True


def filter_contracts(contracts: Sequence[Contract], filters: Optional[ContractFilters] = None) -> List[Contract]:
    """Contracts passing ``filters``, in their original order."""
    filters = filters or ContractFilters()
    return [contract for contract in contracts if matches(contract, filters)]
