import random

import pytest

from daybook.core.errors import ErrorKind, InvalidDateFormat, NotFound, StoreFailure
from daybook.core.models import Transaction
from daybook.days import DayIndex
from daybook.store.memory import MemoryStore, MemoryUnit
from daybook.store.sqlite_store import SQLiteStore, SQLiteUnit


def _make_store(kind, tmp_path):
    if kind == "sqlite":
        store = SQLiteStore(tmp_path / "ledger.db")
    else:
        store = MemoryStore()
    store.bootstrap()
    return store


@pytest.fixture(params=["sqlite", "memory"])
def index(request, tmp_path):
    store = _make_store(request.param, tmp_path)
    yield DayIndex(store)
    store.close()


def _days(index):
    return sorted(day.date for day in index.list_days())


def _rows(index):
    return [(tx.id, tx.description, tx.amount, tx.transaction_type, tx.date)
            for tx in index.list_transactions()]


def _assert_coherent(index):
    expected = {tx.date for tx in index.list_transactions()}
    assert {day.date for day in index.list_days()} == expected
    assert index.verify().ok


def test_example_scenario(index):
    first = index.add("A", 10.00, "expense", "01.06.2024")
    assert first == 1
    assert _days(index) == ["01.06.2024"]

    second = index.add("B", 5.00, "income", "01.06.2024")
    assert second == 2
    assert _days(index) == ["01.06.2024"]

    index.delete(1)
    assert _days(index) == ["01.06.2024"]

    index.delete(2)
    assert _days(index) == []


def test_same_day_is_marked_once(index):
    index.add("Coffee", 3.5, "expense", "02.03.2024")
    index.add("Salary", 2500, "income", "02.03.2024")

    assert [day.date for day in index.list_days()] == ["02.03.2024"]


def test_date_is_normalized_in_both_tables(index):
    tx_id = index.add("Coffee", 3.5, "expense", "1.6.2024")

    assert _days(index) == ["01.06.2024"]
    assert index.list_transactions()[0].date == "01.06.2024"

    index.update(Transaction(tx_id, "Coffee", 3.5, "expense", "01.06.2024"))
    assert _days(index) == ["01.06.2024"]
    _assert_coherent(index)


def test_delete_keeps_day_while_other_transactions_remain(index):
    keep = index.add("Lunch", 12.0, "expense", "05.05.2024")
    drop = index.add("Dinner", 20.0, "expense", "05.05.2024")

    index.delete(drop)
    assert _days(index) == ["05.05.2024"]

    index.delete(keep)
    assert _days(index) == []


def test_update_moves_sole_transaction_to_new_day(index):
    tx_id = index.add("Rent", 900, "expense", "01.01.2024")
    index.add("Groceries", 40, "expense", "03.01.2024")

    index.update(Transaction(tx_id, "Rent", 900, "expense", "02.01.2024"))

    assert _days(index) == ["02.01.2024", "03.01.2024"]
    _assert_coherent(index)


def test_update_keeps_old_day_when_shared(index):
    moving = index.add("Rent", 900, "expense", "01.01.2024")
    index.add("Bonus", 100, "income", "01.01.2024")

    index.update(Transaction(moving, "Rent", 900, "expense", "15.01.2024"))

    assert _days(index) == ["01.01.2024", "15.01.2024"]
    _assert_coherent(index)


def test_update_without_date_change_leaves_days_alone(index, monkeypatch):
    tx_id = index.add("Rent", 900, "expense", "01.01.2024")
    touched = []
    unit_cls = type(_unit_of(index))
    original_delete = unit_cls.delete

    def tracking_delete(self, table, key):
        touched.append((table, key))
        return original_delete(self, table, key)

    monkeypatch.setattr(unit_cls, "delete", tracking_delete)

    index.update(Transaction(tx_id, "Rent (March)", 950, "expense", "01.01.2024"))

    assert touched == []
    assert _days(index) == ["01.01.2024"]
    assert index.list_transactions()[0].description == "Rent (March)"
    assert index.list_transactions()[0].amount == 950.0


def test_missing_id_raises_not_found_and_changes_nothing(index):
    index.add("Rent", 900, "expense", "01.01.2024")
    before = (_rows(index), _days(index))

    with pytest.raises(NotFound) as exc:
        index.update(Transaction(42, "Ghost", 1, "expense", "02.01.2024"))
    assert exc.value.kind is ErrorKind.NOT_FOUND

    with pytest.raises(NotFound):
        index.delete(42)

    assert (_rows(index), _days(index)) == before


@pytest.mark.parametrize("bad", ["2024-06-01", "32.01.2024", "01/06/2024", "", "tomorrow"])
def test_malformed_date_inserts_nothing(index, bad):
    with pytest.raises(InvalidDateFormat) as exc:
        index.add("Coffee", 3.5, "expense", bad)
    assert exc.value.kind is ErrorKind.INVALID_DATE_FORMAT
    assert _rows(index) == []
    assert _days(index) == []


def test_update_with_malformed_date_changes_nothing(index):
    tx_id = index.add("Coffee", 3.5, "expense", "01.06.2024")
    before = (_rows(index), _days(index))

    with pytest.raises(InvalidDateFormat):
        index.update(Transaction(tx_id, "Tea", 2.0, "expense", "June 2nd"))

    assert (_rows(index), _days(index)) == before


@pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_amount_is_rejected(index, amount):
    with pytest.raises(ValueError):
        index.add("Coffee", amount, "expense", "01.06.2024")
    assert _rows(index) == []
    assert _days(index) == []

    tx_id = index.add("Coffee", 3.5, "expense", "01.06.2024")
    before = (_rows(index), _days(index))
    with pytest.raises(ValueError):
        index.update(Transaction(tx_id, "Tea", amount, "expense", "02.06.2024"))
    assert (_rows(index), _days(index)) == before


def test_update_of_unknown_id_reports_not_found_before_bad_date(index):
    with pytest.raises(NotFound):
        index.update(Transaction(7, "Tea", 2.0, "expense", "not a date"))


def _unit_of(index):
    with index.store.atomic() as unit:
        return unit


def test_failed_reconciliation_rolls_back_insert(index, monkeypatch):
    index.add("Coffee", 3.5, "expense", "01.06.2024")
    before = (_rows(index), _days(index))
    unit_cls = type(_unit_of(index))

    def broken(self, table, row):
        raise StoreFailure("disk full")

    monkeypatch.setattr(unit_cls, "insert_if_absent", broken)

    with pytest.raises(StoreFailure) as exc:
        index.add("Tea", 2.0, "expense", "02.06.2024")
    assert exc.value.kind is ErrorKind.STORE_FAILURE

    monkeypatch.undo()
    assert (_rows(index), _days(index)) == before


def test_failed_retirement_rolls_back_delete(index, monkeypatch):
    tx_id = index.add("Coffee", 3.5, "expense", "01.06.2024")
    before = (_rows(index), _days(index))
    unit_cls = type(_unit_of(index))
    original_delete = unit_cls.delete

    def broken(self, table, key):
        if table == "days":
            raise StoreFailure("day index is read-only")
        return original_delete(self, table, key)

    monkeypatch.setattr(unit_cls, "delete", broken)

    with pytest.raises(StoreFailure):
        index.delete(tx_id)

    monkeypatch.undo()
    assert (_rows(index), _days(index)) == before


def test_failed_retirement_rolls_back_update(index, monkeypatch):
    tx_id = index.add("Coffee", 3.5, "expense", "01.06.2024")
    before = (_rows(index), _days(index))
    unit_cls = type(_unit_of(index))

    def broken(self, table, **match):
        raise StoreFailure("count failed")

    monkeypatch.setattr(unit_cls, "count", broken)

    with pytest.raises(StoreFailure):
        index.update(Transaction(tx_id, "Coffee", 3.5, "expense", "09.06.2024"))

    monkeypatch.undo()
    assert (_rows(index), _days(index)) == before


def test_row_deleted_during_update_is_not_found(index, monkeypatch):
    tx_id = index.add("Coffee", 3.5, "expense", "01.06.2024")
    unit_cls = type(_unit_of(index))

    def vanished(self, table, key, values):
        return False

    monkeypatch.setattr(unit_cls, "update", vanished)

    with pytest.raises(NotFound):
        index.update(Transaction(tx_id, "Coffee", 3.5, "expense", "09.06.2024"))

    monkeypatch.undo()
    assert _days(index) == ["01.06.2024"]


def test_random_operations_stay_coherent(index):
    rng = random.Random(1234)
    dates = ["01.01.2024", "02.01.2024", "03.01.2024", "29.02.2024"]
    live = []
    for step in range(120):
        action = rng.choice(["add", "add", "update", "delete"])
        if action == "add" or not live:
            live.append(index.add(f"tx{step}", rng.uniform(-50, 50), "expense", rng.choice(dates)))
        elif action == "update":
            tx_id = rng.choice(live)
            index.update(Transaction(tx_id, f"tx{step}", 1.0, "income", rng.choice(dates)))
        else:
            tx_id = live.pop(rng.randrange(len(live)))
            index.delete(tx_id)
        _assert_coherent(index)


def test_verify_reports_stale_and_missing_markers(tmp_path):
    store = _make_store("memory", tmp_path)
    index = DayIndex(store)
    index.add("Coffee", 3.5, "expense", "01.06.2024")
    with store.atomic() as unit:
        unit.insert("days", {"date": "05.06.2024"})
        unit.delete("days", "01.06.2024")

    report = index.verify()

    assert not report.ok
    assert report.stale == ["05.06.2024"]
    assert report.missing == ["01.06.2024"]


def test_unit_classes_match_stores(tmp_path):
    assert isinstance(_unit_of(DayIndex(_make_store("memory", tmp_path))), MemoryUnit)
    store = _make_store("sqlite", tmp_path)
    assert isinstance(_unit_of(DayIndex(store)), SQLiteUnit)
    store.close()
