"""Contract Archive - core package."""

from archive.config import ArchiveSettings, TABLES, CLIENT_COLLECTIONS

from archive.models import (
    ContractStatus,
    PartyType,
    IdType,
    ContractFile,
    Party,
    Contract,
    User,
    AuditLogEntry,
    ContractTypeDefinition,
    SystemSettings,
)

from archive.logging_config import (
    setup_logging,
    get_table_logger,
    log_store_operation,
)

from archive.error_handling import (
    ArchiveError,
    InvalidTableError,
    PayloadError,
    PayloadTooLargeError,
    ContractNotFoundError,
    StoreError,
    handle_errors,
)

from archive.observability import StatusMetricsRecorder, StatusSampler

__version__ = "1.0.0"

__all__ = [
    # Config
    "ArchiveSettings",
    "TABLES",
    "CLIENT_COLLECTIONS",
    # Models
    "ContractStatus",
    "PartyType",
    "IdType",
    "ContractFile",
    "Party",
    "Contract",
    "User",
    "AuditLogEntry",
    "ContractTypeDefinition",
    "SystemSettings",
    # Logging
    "setup_logging",
    "get_table_logger",
    "log_store_operation",
    # Error Handling
    "ArchiveError",
    "InvalidTableError",
    "PayloadError",
    "PayloadTooLargeError",
    "ContractNotFoundError",
    "StoreError",
    "handle_errors",
    # Observability
    "StatusMetricsRecorder",
    "StatusSampler",
]
