"""
Failure injection for SaleRecorder.

Verifies:
- A storage failure part-way through a sale rolls back every row
- Non-referential storage failures surface as StorageError
- Cancellation (BaseException) rolls back and propagates unchanged
"""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from inventauri.exceptions import StorageError, UnknownItemReferenceError
from inventauri.services.sale_writer import SaleWriter

TENANT_A = "tenant-a"

NO_ROWS = {"sales": 0, "sale_lines": 0, "stock_movements": 0}

TWO_LINES = {
    "items": [
        {"itemId": "sku-1", "qty": 1, "unitPriceCents": 250},
        {"itemId": "sku-2", "qty": 2, "unitPriceCents": 100},
    ]
}


def _sales_rows(counts: dict) -> dict:
    return {k: counts[k] for k in NO_ROWS}


def _fail_on_call(monkeypatch, method_name: str, call_no: int, exc: BaseException):
    """Make SaleWriter.<method_name> raise ``exc`` on its ``call_no``-th call."""
    original = getattr(SaleWriter, method_name)
    calls = {"n": 0}

    def wrapper(self, *args, **kwargs):
        calls["n"] += 1
        if calls["n"] == call_no:
            raise exc
        return original(self, *args, **kwargs)

    monkeypatch.setattr(SaleWriter, method_name, wrapper)
    return calls


class TestStorageFailure:
    def test_failure_on_second_movement_rolls_back(
        self, recorder, seeded_items, row_counts, monkeypatch
    ):
        _fail_on_call(
            monkeypatch,
            "create_stock_movement",
            2,
            OperationalError("INSERT INTO stock_movements", {}, Exception("disk I/O error")),
        )

        with pytest.raises(StorageError) as exc_info:
            recorder.record_sale(TENANT_A, TWO_LINES)

        assert exc_info.value.operation == "record_sale"
        assert "disk I/O error" in exc_info.value.detail
        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert _sales_rows(row_counts()) == NO_ROWS

    def test_failure_on_sale_header(self, recorder, seeded_items, row_counts, monkeypatch):
        _fail_on_call(
            monkeypatch,
            "create_sale",
            1,
            OperationalError("INSERT INTO sales", {}, Exception("connection reset")),
        )

        with pytest.raises(StorageError):
            recorder.record_sale(TENANT_A, TWO_LINES)

        assert _sales_rows(row_counts()) == NO_ROWS

    def test_storage_error_is_not_referential(self, recorder, seeded_items, monkeypatch):
        _fail_on_call(
            monkeypatch,
            "create_sale_line",
            1,
            OperationalError("INSERT INTO sale_lines", {}, Exception("timeout")),
        )

        with pytest.raises(StorageError) as exc_info:
            recorder.record_sale(TENANT_A, TWO_LINES)

        assert not isinstance(exc_info.value, UnknownItemReferenceError)

    def test_failure_logged(self, recorder, seeded_items, captured_logs, monkeypatch):
        _fail_on_call(
            monkeypatch,
            "create_sale_line",
            2,
            OperationalError("INSERT INTO sale_lines", {}, Exception("timeout")),
        )

        with pytest.raises(StorageError):
            recorder.record_sale(TENANT_A, TWO_LINES)

        failed = [r for r in captured_logs() if r["message"] == "sale_recording_failed"]
        assert failed[0]["error_code"] == "STORAGE_ERROR"
        assert failed[0]["line_index"] == 1


class TestCancellation:
    def test_cancelled_mid_sale_rolls_back(
        self, recorder, seeded_items, row_counts, monkeypatch
    ):
        _fail_on_call(monkeypatch, "create_sale_line", 2, asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            recorder.record_sale(TENANT_A, TWO_LINES)

        assert _sales_rows(row_counts()) == NO_ROWS

    def test_cancellation_is_not_translated(self, recorder, seeded_items, captured_logs, monkeypatch):
        _fail_on_call(monkeypatch, "create_stock_movement", 1, asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            recorder.record_sale(TENANT_A, TWO_LINES)

        logs = captured_logs()
        assert any(r["message"] == "transaction_rolled_back" for r in logs)
        assert any(r["message"] == "sale_recording_failed" for r in logs)

    def test_recorder_usable_after_cancellation(
        self, recorder, seeded_items, row_counts, monkeypatch
    ):
        _fail_on_call(monkeypatch, "create_sale", 1, asyncio.CancelledError())
        with pytest.raises(asyncio.CancelledError):
            recorder.record_sale(TENANT_A, TWO_LINES)

        monkeypatch.undo()
        recorder.record_sale(TENANT_A, TWO_LINES)

        assert _sales_rows(row_counts()) == {"sales": 1, "sale_lines": 2, "stock_movements": 2}
