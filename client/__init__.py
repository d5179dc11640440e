"""Contract Archive - client side (persistence gateway and session state)."""

from client.gateway import PersistenceGateway, SAVING, SAVED, ERROR
from client.app_state import AppState, CollectionSaver
from client.auth import INITIAL_USERS, authenticate
from client.search import ContractFilters, filter_contracts

__all__ = [
    "PersistenceGateway",
    "SAVING",
    "SAVED",
    "ERROR",
    "AppState",
    "CollectionSaver",
    "INITIAL_USERS",
    "authenticate",
    "ContractFilters",
    "filter_contracts",
]
