"""Tests for the archive error taxonomy and the store error decorator."""

import pytest

from archive.error_handling import (
    ContractNotFoundError,
    InvalidTableError,
    StoreError,
    handle_errors,
)


@handle_errors(StoreError)
def failing_query():
    raise ValueError("disk I/O error")


@handle_errors(StoreError)
def unknown_table():
    raise InvalidTableError("secrets")


@handle_errors(StoreError)
def healthy_query():
    return 42


class TestHandleErrors:
    def test_unexpected_error_becomes_store_error(self):
        with pytest.raises(StoreError) as exc_info:
            failing_query()

        assert "failing_query" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert exc_info.value.status_code == 500

    def test_archive_errors_pass_through(self):
        with pytest.raises(InvalidTableError):
            unknown_table()

    def test_return_value_untouched(self):
        assert healthy_query() == 42


class TestStatusCodes:
    def test_not_found(self):
        error = ContractNotFoundError(9)
        assert error.status_code == 404
        assert error.contract_id == 9
        assert str(error) == "Not found"
