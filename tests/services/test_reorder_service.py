"""Tests for the bulk reorder service."""

from unittest.mock import patch

import pytest
from sqlalchemy.dialects import postgresql

from ordinal_stage.core.errors import NotFoundError, StoreError, ValidationError
from ordinal_stage.models.record import RECORD_STATUS_DRAFT
from ordinal_stage.repositories.record_repo import OrderStore
from ordinal_stage.services.reconciler import Reconciler
from ordinal_stage.services.reorder import ReorderService, validate_ordered_ids


@pytest.fixture()
def three_records(make_record):
    return (
        make_record("R1", menu_order=1, legacy_order=1),
        make_record("R2", menu_order=2, legacy_order=2),
        make_record("R3", menu_order=3, legacy_order=3),
    )


def _snapshot(reload, records) -> list[tuple[int, int | None]]:
    return [(reload(r).menu_order, reload(r).legacy_order) for r in records]


def test_save_order_assigns_zero_based_positions(db_session, three_records, reload) -> None:
    r1, r2, r3 = three_records

    result = ReorderService(db_session).save_order([r3.id, r1.id, r2.id])

    assert result.updated_count == 3
    assert result.requested == 3
    assert result.warning is None
    assert (reload(r3).menu_order, reload(r3).legacy_order) == (0, 0)
    assert (reload(r1).menu_order, reload(r1).legacy_order) == (1, 1)
    assert (reload(r2).menu_order, reload(r2).legacy_order) == (2, 2)


def test_missing_record_rejects_whole_call(db_session, three_records, reload) -> None:
    r1 = three_records[0]
    before = _snapshot(reload, three_records)

    with pytest.raises(NotFoundError) as exc_info:
        ReorderService(db_session).save_order([r1.id, 999999])

    assert exc_info.value.missing_ids == [999999]
    assert _snapshot(reload, three_records) == before


def test_unpublished_record_is_not_found(db_session, three_records, make_record, reload) -> None:
    draft = make_record("draft", status=RECORD_STATUS_DRAFT)
    before = _snapshot(reload, three_records)

    with pytest.raises(NotFoundError):
        ReorderService(db_session).save_order([three_records[1].id, draft.id])

    assert _snapshot(reload, three_records) == before


@pytest.mark.parametrize(
    "payload",
    [
        "1,2,3",
        {"ids": [1]},
        None,
        [],
        [1, 0],
        [1, -4],
        [1, "2"],
        [1, 2.0],
        [True],
        [1, 1],
    ],
)
def test_invalid_input_is_rejected_without_mutation(
    db_session, three_records, reload, payload
) -> None:
    before = _snapshot(reload, three_records)

    with pytest.raises(ValidationError):
        ReorderService(db_session).save_order(payload)

    assert _snapshot(reload, three_records) == before


def test_validate_ordered_ids_accepts_tuples() -> None:
    assert validate_ordered_ids((3, 1, 2)) == [3, 1, 2]


def test_store_failure_mid_save_rolls_back(db_session, three_records, reload) -> None:
    """A failure after some updates leaves every record as it was."""
    r1, r2, r3 = three_records
    before = _snapshot(reload, three_records)
    original = OrderStore.set_legacy_ordinal
    calls = {"count": 0}

    def _fail_on_second(self, record_id, value):
        calls["count"] += 1
        if calls["count"] == 2:
            raise StoreError("disk full")
        return original(self, record_id, value)

    with patch.object(OrderStore, "set_legacy_ordinal", _fail_on_second):
        with pytest.raises(StoreError):
            ReorderService(db_session).save_order([r3.id, r2.id, r1.id])

    assert _snapshot(reload, three_records) == before


def test_partial_update_reports_warning(db_session, three_records, reload) -> None:
    r1, r2, r3 = three_records
    original = OrderStore.set_primary_ordinal

    def _skip_r2(self, record_id, value):
        if record_id == r2.id:
            return False
        return original(self, record_id, value)

    with patch.object(OrderStore, "set_primary_ordinal", _skip_r2):
        result = ReorderService(db_session).save_order([r2.id, r1.id, r3.id])

    assert result.updated_count == 2
    assert result.warning is not None
    assert reload(r1).menu_order == 1
    assert reload(r3).menu_order == 2


def test_saved_order_survives_reconciliation(db_session, three_records, store) -> None:
    r1, r2, r3 = three_records
    ReorderService(db_session).save_order([r2.id, r3.id, r1.id])

    result = Reconciler(store).reconcile()

    assert not result.mutated
    assert [record.id for record in store.list_ordered()] == [r2.id, r3.id, r1.id]


def test_list_for_editing_is_sorted(db_session, make_record) -> None:
    late = make_record("late", menu_order=9)
    early = make_record("early", menu_order=1)
    tie = make_record("tie", menu_order=1)

    listed = ReorderService(db_session).list_for_editing()

    assert [record.id for record in listed] == [early.id, tie.id, late.id]


def test_save_locks_rows_in_id_order(db_session, three_records) -> None:
    """Overlapping saves acquire row locks in the same order."""
    r1, r2, r3 = three_records

    with patch.object(db_session, "scalars", wraps=db_session.scalars) as scalars:
        ReorderService(db_session).save_order([r3.id, r1.id, r2.id])

    (statement,) = [call.args[0] for call in scalars.call_args_list]
    sql = str(statement.compile(dialect=postgresql.dialect()))
    assert "ORDER BY record.id FOR UPDATE" in sql
