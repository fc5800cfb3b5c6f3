"""Tests for legacy/primary ordinal reconciliation."""

from unittest.mock import patch

from sqlalchemy.dialects import postgresql

from ordinal_stage.repositories.record_repo import OrderStore
from ordinal_stage.services.reconciler import PlannedWrite, Reconciler, plan_reconciliation


def _ordinals(store: OrderStore) -> dict[int, tuple[int, int | None]]:
    store.session.expire_all()
    return {record.id: (record.menu_order, record.legacy_order) for record in store.list()}


def test_plan_reconciliation_scenario_a() -> None:
    rows = [(1, 0, 5), (2, 0, None), (3, 3, None)]

    assert plan_reconciliation(rows) == [
        PlannedWrite(1, primary=5, legacy=None),
        PlannedWrite(2, primary=6, legacy=6),
    ]


def test_plan_reconciliation_first_record_keeps_contested_legacy() -> None:
    rows = [(2, 0, 4), (1, 0, 4)]

    assert plan_reconciliation(rows) == [
        PlannedWrite(1, primary=4, legacy=None),
        PlannedWrite(2, primary=5, legacy=5),
    ]


def test_plan_reconciliation_starts_at_one_for_empty_claims() -> None:
    assert plan_reconciliation([(1, 0, None)]) == [PlannedWrite(1, primary=1, legacy=1)]


def test_reconcile_scenario_a(make_record, store, reload) -> None:
    r1 = make_record("R1", menu_order=0, legacy_order=5)
    r2 = make_record("R2", menu_order=0)
    r3 = make_record("R3", menu_order=3)

    result = Reconciler(store).reconcile()

    assert reload(r1).menu_order == 5
    assert reload(r3).menu_order == 3
    assert reload(r3).legacy_order is None
    assert (reload(r2).menu_order, reload(r2).legacy_order) == (6, 6)
    assert result.visited == 3
    assert result.repaired == []


def test_reconcile_is_idempotent(make_record, store) -> None:
    make_record("a", menu_order=0, legacy_order=5)
    make_record("b", menu_order=0, legacy_order=5)
    make_record("c", menu_order=0)
    make_record("d", menu_order=7)
    make_record("e", menu_order=7, legacy_order=7)
    make_record("f", menu_order=2, legacy_order=8)

    first = Reconciler(store).reconcile()
    after_first = _ordinals(store)
    second = Reconciler(store).reconcile()

    assert first.mutated
    assert not second.mutated
    assert _ordinals(store) == after_first


def test_reconcile_leaves_unique_primary_values(make_record, store) -> None:
    for primary, legacy in [(0, 1), (0, 1), (1, None), (0, None), (0, None), (3, 3), (3, 3), (9, 2)]:
        make_record(menu_order=primary, legacy_order=legacy)

    Reconciler(store).reconcile()

    primaries = [primary for primary, _ in _ordinals(store).values()]
    assert len(primaries) == len(set(primaries))


def test_reconcile_follows_legacy_order_without_saves(make_record, store) -> None:
    first = make_record("first", legacy_order=1)
    third = make_record("third", legacy_order=30)
    second = make_record("second", legacy_order=20)

    Reconciler(store).reconcile()

    ordered = [record.id for record in store.list_ordered()]
    assert ordered == [first.id, second.id, third.id]


def test_reconcile_skips_records_that_disappear(make_record, store, reload) -> None:
    gone = make_record("gone", menu_order=0)
    kept = make_record("kept", menu_order=0, legacy_order=4)
    original = OrderStore.set_primary_ordinal

    def _vanish(self, record_id, value):
        if record_id == gone.id:
            return False
        return original(self, record_id, value)

    with patch.object(OrderStore, "set_primary_ordinal", _vanish):
        result = Reconciler(store).reconcile()

    assert reload(kept).menu_order == 4
    assert result.primary_writes == 1


def test_adopt_legacy_only_fills_unordered_records(make_record, store, reload) -> None:
    unordered = make_record("unordered", menu_order=0, legacy_order=3)
    ordered = make_record("ordered", menu_order=8, legacy_order=3)
    zero_legacy = make_record("zero", menu_order=0, legacy_order=0)

    adopted = Reconciler(store).adopt_legacy()

    assert adopted == 1
    assert reload(unordered).menu_order == 3
    assert reload(ordered).menu_order == 8
    assert reload(zero_legacy).menu_order == 0


def test_reconcile_locks_records_before_planning(db_session, store, make_record) -> None:
    """Concurrent saves wait for the sweep instead of interleaving with it."""
    make_record("a", menu_order=1, legacy_order=1)
    make_record("b", menu_order=1, legacy_order=1)
    make_record("c", menu_order=0, legacy_order=3)

    with patch.object(db_session, "scalars", wraps=db_session.scalars) as scalars:
        reconciler = Reconciler(store)
        reconciler.adopt_legacy()
        reconciler.reconcile()

    record_reads = [
        str(call.args[0].compile(dialect=postgresql.dialect()))
        for call in scalars.call_args_list
    ]
    record_reads = [sql for sql in record_reads if "FROM record" in sql]
    assert len(record_reads) == 3
    for sql in record_reads:
        assert "ORDER BY record.id FOR UPDATE" in sql
