"""Mini README: Tests for the per-user data manager.

Structure:
    * Transactions - validation, persistence, filtering and deletion.
    * Categories, budgets and goals - CRUD plus plan check-ins and fold-back.
    * Sync - offline queueing, server merges and the in-progress guard.
    * Export/import and the dashboard shortcut.
"""

from __future__ import annotations

import threading
from datetime import date, timedelta

import pytest

from finassist.errors import NotAuthenticatedError, ValidationError
from finassist.finance import TransactionType
from finassist.finance.data_manager import DataManager, TransactionFilter
from finassist.storage import LocalStore
from finassist.sync import BackgroundSync, ServerClient

TODAY = date(2024, 5, 15)


def _add(manager: DataManager, kind: str, amount: float, on: str, category: str, description: str = ""):
    return manager.add_transaction(
        {"type": kind, "amount": amount, "date": on, "category": category, "description": description}
    )


def test_operations_require_a_signed_in_user(anonymous_manager: DataManager) -> None:
    with pytest.raises(NotAuthenticatedError):
        _add(anonymous_manager, "expense", 10, "2024-05-01", "продукты")


def test_add_transaction_persists_and_pushes(manager: DataManager, store: LocalStore, fake_client) -> None:
    transaction = _add(manager, "expense", 400, "2024-05-01", "продукты")

    stored = store.get("user_1")["transactions"]
    assert stored[0]["id"] == transaction.id
    assert stored[0]["amount"] == 400.0
    assert stored[0]["created"] == "2024-05-15T12:00:00.000Z"
    assert fake_client.pushes == ["1"]
    assert fake_client.data["1"]["transactions"][0]["category"] == "продукты"


def test_invalid_transaction_raises_with_field_errors(manager: DataManager) -> None:
    with pytest.raises(ValidationError) as error:
        _add(manager, "expense", "12.345", "2030-01-01", "продукты")

    assert set(error.value.errors) == {"amount", "date"}
    assert manager.get_transactions() == []


def test_transaction_ids_are_unique(manager: DataManager) -> None:
    first = _add(manager, "expense", 10, "2024-05-01", "продукты")
    second = _add(manager, "expense", 20, "2024-05-01", "продукты")

    assert first.id != second.id


def test_filtering_and_sorting(manager: DataManager) -> None:
    _add(manager, "income", 1000, "2024-05-01", "Зарплата", "May salary")
    _add(manager, "expense", 400, "2024-04-20", "продукты")
    _add(manager, "expense", 50, "2024-05-10", "транспорт", "Metro card")

    expenses = manager.get_transactions(TransactionFilter(type=TransactionType.EXPENSE, sort="amount-asc"))
    this_month = manager.get_transactions(TransactionFilter(period="month", sort="date-desc"))
    searched = manager.get_transactions(TransactionFilter(search="metro"))
    ranged = manager.get_transactions(TransactionFilter(date_from=date(2024, 4, 1), date_to=date(2024, 4, 30)))

    assert [t.amount for t in expenses] == [50, 400]
    assert [t.date for t in this_month] == [date(2024, 5, 10), date(2024, 5, 1)]
    assert [t.category for t in searched] == ["транспорт"]
    assert [t.amount for t in ranged] == [400]


def test_delete_transaction(manager: DataManager) -> None:
    transaction = _add(manager, "expense", 10, "2024-05-01", "продукты")

    manager.delete_transaction(str(transaction.id))

    assert manager.get_transactions() == []
    with pytest.raises(KeyError):
        manager.delete_transaction(transaction.id)


def test_category_management(manager: DataManager) -> None:
    assert manager.add_category(TransactionType.EXPENSE, "Путешествия")
    assert not manager.add_category(TransactionType.EXPENSE, "путешествия")

    manager.move_category(TransactionType.EXPENSE, "Путешествия", 0)
    assert manager.current_data().categories.expense[0] == "Путешествия"

    assert manager.remove_category(TransactionType.EXPENSE, "Путешествия")
    assert not manager.remove_category(TransactionType.EXPENSE, "Путешествия")
    with pytest.raises(ValidationError):
        manager.add_category(TransactionType.INCOME, "<x>")


def test_set_budget_overwrites_by_category(manager: DataManager) -> None:
    first = manager.set_budget("продукты", 500)
    second = manager.set_budget("Продукты", "700")

    budgets = manager.current_data().budgets
    assert len(budgets) == 1
    assert first.id == second.id
    assert budgets[0].category == "Продукты"
    assert budgets[0].limit == 700


def test_budget_needs_known_expense_category(manager: DataManager) -> None:
    with pytest.raises(ValidationError):
        manager.set_budget("Яхты", 500)
    with pytest.raises(ValidationError):
        manager.set_budget("Продукты", 0)


def test_goal_plan_check_ins_fold_into_saved(manager: DataManager, store: LocalStore) -> None:
    goal = manager.add_goal({"name": "Отпуск", "target": 1000, "saved": 0, "deadline": TODAY + timedelta(days=10)})
    for offset in range(5):
        manager.set_plan_day(goal.id, TODAY + timedelta(days=offset))

    projection = manager.goal_projection(goal.id)
    assert projection.daily_amount == 100
    assert projection.expected_saved == 500

    closed = manager.close_plan(goal.id)

    assert closed.saved == 500
    assert manager.get_plan(goal.id) == {}
    assert store.get(f"goal_plan_{goal.id}") is None
    assert store.get("user_1")["goals"][0]["saved"] == 500


def test_goal_updates_and_contributions(manager: DataManager) -> None:
    goal = manager.add_goal({"name": "Машина", "target": 5000})

    manager.contribute_to_goal(goal.id, "250,5")
    updated = manager.update_goal(goal.id, target=6000)

    assert updated.saved == 250.5
    assert updated.target == 6000
    with pytest.raises(ValueError):
        manager.update_goal(goal.id, colour="red")
    with pytest.raises(ValidationError):
        manager.add_goal({"name": "Отпуск", "target": 100, "deadline": "2024-05-01"})


def test_rejected_goal_update_changes_nothing(manager: DataManager, store: LocalStore) -> None:
    goal = manager.add_goal({"name": "Отпуск", "target": 1000})

    with pytest.raises(ValidationError) as error:
        manager.update_goal(goal.id, name="Машина", target="abc")

    assert set(error.value.errors) == {"target"}
    assert manager.get_goal(goal.id).name == "Отпуск"
    assert manager.get_goal(goal.id).target == 1000
    assert store.get("user_1")["goals"][0]["name"] == "Отпуск"


def test_delete_goal_drops_its_plan(manager: DataManager, store: LocalStore) -> None:
    goal = manager.add_goal({"name": "Отпуск", "target": 1000})
    manager.set_plan_day(goal.id, TODAY)

    manager.delete_goal(goal.id)

    assert manager.current_data().goals == []
    assert store.get(f"goal_plan_{goal.id}") is None
    with pytest.raises(KeyError):
        manager.get_goal(goal.id)


def test_offline_saves_queue_until_back_online(manager: DataManager, fake_client) -> None:
    fake_client.data["1"] = {}
    fake_client.online = False
    _add(manager, "expense", 10, "2024-05-01", "продукты")

    assert fake_client.pushes == []
    assert manager.sync_stats()["queue_length"] == 1
    assert manager.offline

    fake_client.online = True
    manager.set_online(True)

    assert fake_client.pushes == ["1"]
    assert manager.sync_stats()["queue_length"] == 0
    assert fake_client.data["1"]["transactions"][0]["amount"] == 10.0


def test_offline_edit_keeps_records_only_on_the_server(manager: DataManager, fake_client) -> None:
    first = _add(manager, "expense", 10, "2024-05-01", "продукты")
    fake_client.data["1"]["goals"] = [
        {"id": 99, "name": "Машина", "target": 5000, "saved": 0, "updated": "2024-05-14T00:00:00.000Z"}
    ]
    manager.set_online(False)
    second = _add(manager, "expense", 20, "2024-05-02", "продукты")
    assert manager.sync_stats()["queue_length"] == 1

    manager.set_online(True)

    server = fake_client.data["1"]
    assert [goal.id for goal in manager.current_data().goals] == [99]
    assert [goal["id"] for goal in server["goals"]] == [99]
    assert {t["id"] for t in server["transactions"]} == {first.id, second.id}
    assert manager.sync_stats()["queue_length"] == 0


def test_queued_save_waits_for_a_server_copy(manager: DataManager, fake_client) -> None:
    manager.set_online(False)
    _add(manager, "expense", 10, "2024-05-01", "продукты")

    manager.set_online(True)

    assert not manager.sync_with_server()
    assert fake_client.pushes == []
    assert manager.sync_stats()["queue_length"] == 1


def test_sync_pulls_records_added_elsewhere(manager: DataManager, fake_client) -> None:
    events = []
    manager.subscribe(lambda event, payload: events.append(event))
    _add(manager, "expense", 10, "2024-05-01", "продукты")
    fake_client.data["1"]["goals"] = [
        {"id": 99, "name": "Машина", "target": 5000, "saved": 0, "updated": "2024-05-14T00:00:00.000Z"}
    ]

    assert manager.sync_with_server()

    data = manager.current_data()
    assert [goal.id for goal in data.goals] == [99]
    assert len(data.transactions) == 1
    assert "data:conflicts-resolved" in events
    assert manager.last_sync_time == "2024-05-15T12:00:00.000Z"


def test_sync_keeps_newer_server_edit(manager: DataManager, fake_client) -> None:
    transaction = _add(manager, "expense", 10, "2024-05-01", "продукты")
    server_copy = dict(fake_client.data["1"]["transactions"][0], amount=999, updated="2024-05-16T00:00:00.000Z")
    fake_client.data["1"]["transactions"] = [server_copy]

    manager.sync_with_server()

    assert manager.get_transactions()[0].id == transaction.id
    assert manager.get_transactions()[0].amount == 999


def test_sync_is_skipped_when_nothing_changed_or_busy(manager: DataManager, fake_client) -> None:
    _add(manager, "expense", 10, "2024-05-01", "продукты")

    assert not manager.sync_with_server()

    manager.sync_in_progress = True
    fake_client.data["1"]["goals"] = [{"id": 5, "name": "Отпуск", "target": 10}]
    assert not manager.sync_with_server()


def test_background_sync_tick_respects_flags(manager: DataManager, fake_client) -> None:
    sync = BackgroundSync(manager, interval=3600)

    assert sync.tick()
    manager.sync_in_progress = True
    assert not sync.tick()
    manager.sync_in_progress = False
    fake_client.online = False
    assert not sync.tick()


class _FlagManager:
    offline = False
    sync_in_progress = False

    def __init__(self) -> None:
        self.synced = threading.Event()

    def sync_with_server(self) -> bool:
        self.synced.set()
        return False


def test_background_sync_runs_on_its_interval() -> None:
    manager = _FlagManager()
    sync = BackgroundSync(manager, interval=0.05)

    sync.start()
    try:
        assert sync.running
        assert manager.synced.wait(timeout=5)
    finally:
        sync.stop()

    assert not sync.running


def test_export_and_import_round_trip(manager: DataManager) -> None:
    _add(manager, "expense", 10, "2024-05-01", "продукты")
    manager.add_goal({"name": "Отпуск", "target": 1000})

    exported = manager.export_data(include_goals=False)

    assert exported["user"]["email"] == "anna@example.com"
    assert set(exported["data"]) == {"transactions", "incomeCategories", "expenseCategories", "budgets"}

    other = DataManager(LocalStore(), client=ServerClient(), today=lambda: TODAY)
    other.set_current_user(manager.current_user())
    other.import_data({"data": {"transactions": exported["data"]["transactions"], "goals": []}})

    assert len(other.get_transactions()) == 1
    with pytest.raises(ValueError):
        other.import_data({"transactions": []})


def test_dashboard_shortcut(manager: DataManager) -> None:
    _add(manager, "income", 1000, "2024-05-01", "Зарплата")
    _add(manager, "expense", 400, "2024-05-01", "продукты")
    manager.set_budget("продукты", 500)

    snapshot = manager.dashboard()

    assert snapshot.totals.savings_rate_display == "60.0"
    assert snapshot.budgets[0].percent == 80.0
