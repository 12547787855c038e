"""Mini README: Per-user collections with local persistence and best-effort sync.

Structure:
    * UserData - transactions, categories, budgets and goals of one user.
    * TransactionFilter - type/category/date/search filters plus sorting.
    * DataManager - CRUD over the collections, goal plans, export/import,
      and reconciliation with the optional sync server.

Every mutation rewrites the user's whole bundle under ``user_<id>`` and then
pushes it to the server, or queues it while offline. ``sync_with_server``
pulls the server copy first, skips work when the fingerprints match, and
otherwise merges last-write-wins, saves and pushes the result. A queued save
is only dropped once the server holds the merged bundle, so records that
exist only on the server survive an offline edit. The in-progress flag
keeps the periodic timer from stacking syncs but is not a lock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ..analytics.dashboard import DashboardSnapshot, build_dashboard
from ..analytics.goals import GoalProjection, fold_plan, project_goal
from ..analytics.metrics import period_start
from ..errors import NotAuthenticatedError, ValidationError
from ..logging_utils import get_logger
from ..sync.client import ServerClient
from ..sync.merge import CATEGORY_COLLECTIONS, RECORD_COLLECTIONS, has_changes, merge_collections, resolve_conflicts
from ..validation import Validator
from .categories import (
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
    CategoryBook,
    category_key,
)
from .models import (
    Budget,
    Goal,
    RecordId,
    Transaction,
    TransactionType,
    User,
    coerce_amount,
    next_record_id,
    parse_date,
    utc_timestamp,
)

LOGGER = get_logger(__name__)

CURRENT_USER_KEY = "currentUser"
LAST_SYNC_KEY = "lastSyncTime"
EXPORT_VERSION = "2.0.0"


def user_key(user_id: RecordId) -> str:
    return f"user_{user_id}"


def plan_key(goal_id: RecordId) -> str:
    return f"goal_plan_{goal_id}"


@dataclass(slots=True)
class UserData:
    """All financial collections belonging to one user."""

    transactions: List[Transaction] = field(default_factory=list)
    categories: CategoryBook = field(default_factory=CategoryBook)
    budgets: List[Budget] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "UserData":
        payload = payload or {}
        return cls(
            transactions=[Transaction.from_dict(item) for item in _records(payload.get("transactions"))],
            categories=CategoryBook(
                income=_labels(payload.get("incomeCategories"), DEFAULT_INCOME_CATEGORIES),
                expense=_labels(payload.get("expenseCategories"), DEFAULT_EXPENSE_CATEGORIES),
            ),
            budgets=[Budget.from_dict(item) for item in _records(payload.get("budgets"))],
            goals=[Goal.from_dict(item) for item in _records(payload.get("goals"))],
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "transactions": [transaction.as_dict() for transaction in self.transactions],
            "incomeCategories": list(self.categories.income),
            "expenseCategories": list(self.categories.expense),
            "budgets": [budget.as_dict() for budget in self.budgets],
            "goals": [goal.as_dict() for goal in self.goals],
        }


def _records(value: Any) -> List[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _labels(value: Any, default: List[str]) -> List[str]:
    if not isinstance(value, list):
        return list(default)
    return [str(label) for label in value]


@dataclass
class TransactionFilter:
    """Criteria for ``DataManager.get_transactions``; unset fields match everything."""

    type: Optional[TransactionType] = None
    category: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = None
    period: Optional[str] = None
    sort: Optional[str] = None

    def apply(self, transactions: Iterable[Transaction], today: date) -> List[Transaction]:
        results = list(transactions)
        if self.type is not None:
            results = [t for t in results if t.type is self.type]
        if self.category:
            results = [t for t in results if t.category == self.category]
        start = self.date_from
        if self.period:
            start = max(filter(None, [start, period_start(self.period, today)]), default=None)
        if start is not None:
            results = [t for t in results if t.date is not None and t.date >= start]
        if self.date_to is not None:
            results = [t for t in results if t.date is not None and t.date <= self.date_to]
        if self.search:
            term = self.search.lower()
            results = [t for t in results if term in t.description.lower() or term in t.category.lower()]
        return sort_transactions(results, self.sort)


def sort_transactions(transactions: List[Transaction], order: Optional[str]) -> List[Transaction]:
    if order in ("date-desc", "date-asc"):
        return sorted(transactions, key=lambda t: t.date or date.min, reverse=order == "date-desc")
    if order in ("amount-desc", "amount-asc"):
        return sorted(transactions, key=lambda t: t.amount, reverse=order == "amount-desc")
    return transactions


def _plain(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Render enums and dates as the strings the validator expects."""

    plain: Dict[str, Any] = {}
    for key, value in payload.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, (date, datetime)):
            value = value.isoformat()[:10]
        plain[key] = value
    return plain


class DataManager:
    """Own the signed-in user's collections and keep them persisted."""

    def __init__(
        self,
        store: Any,
        *,
        client: Optional[ServerClient] = None,
        validator: Optional[Validator] = None,
        clock: Optional[Callable[[], datetime]] = None,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self.store = store
        self.client = client or ServerClient()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._today = today or date.today
        self.validator = validator or Validator(today=self._today)
        self._cache: Dict[str, UserData] = {}
        self._pending: Dict[str, Dict[str, Any]] = {}
        self._listeners: List[Callable[[str, Any], None]] = []
        self._forced_offline = False
        self.sync_in_progress = False
        self.last_sync_time: Optional[str] = store.get(LAST_SYNC_KEY)

    # ----------------------------------------------------------------- events
    def subscribe(self, listener: Callable[[str, Any], None]) -> None:
        """Register ``listener(event, payload)`` for ``data:*`` events."""

        self._listeners.append(listener)

    def _emit(self, event: str, payload: Any = None) -> None:
        for listener in list(self._listeners):
            listener(event, payload)

    # ------------------------------------------------------------ online state
    @property
    def offline(self) -> bool:
        return self._forced_offline or not self.client.online

    def set_online(self, online: bool) -> None:
        """Switch connectivity; coming back online merges queued saves with the server."""

        self._forced_offline = not online
        if online:
            LOGGER.info("Back online with %s queued saves, syncing", len(self._pending))
            self.sync_with_server()
        else:
            LOGGER.warning("Switched to offline mode")

    # ------------------------------------------------------------------ users
    def current_user(self) -> Optional[User]:
        payload = self.store.get(CURRENT_USER_KEY)
        if not isinstance(payload, Mapping):
            return None
        return User.from_dict(payload)

    def set_current_user(self, user: Optional[User]) -> None:
        if user is None:
            self.store.remove(CURRENT_USER_KEY)
            self._cache.clear()
            LOGGER.debug("Current user cleared")
            return
        self.store.set(CURRENT_USER_KEY, user.public_dict())
        self.load_user_data(user.id, refresh=True)

    def _require_user(self) -> User:
        user = self.current_user()
        if user is None:
            raise NotAuthenticatedError()
        return user

    # ------------------------------------------------------------ persistence
    def load_user_data(self, user_id: RecordId, *, refresh: bool = False) -> UserData:
        """Return the user's bundle: memory, then local store, then server, then defaults."""

        key = user_key(user_id)
        if not refresh and key in self._cache:
            return self._cache[key]
        payload = self.store.get(key)
        if not isinstance(payload, Mapping) and not self.offline:
            server_payload = self.client.fetch_user_data(user_id)
            if server_payload is not None:
                payload = server_payload
                self._mark_synced()
        data = UserData.from_dict(payload if isinstance(payload, Mapping) else None)
        self._cache[key] = data
        LOGGER.debug("Loaded data for user %s (%s transactions)", user_id, len(data.transactions))
        return data

    def current_data(self) -> UserData:
        return self.load_user_data(self._require_user().id)

    def save_user_data(self, data: UserData) -> None:
        user = self._require_user()
        self._persist(user.id, data)
        self._push(user.id, data.as_dict())

    def _persist(self, user_id: RecordId, data: UserData) -> None:
        key = user_key(user_id)
        self._cache[key] = data
        if not self.store.set(key, data.as_dict()):
            LOGGER.warning("Data for user %s kept in memory only", user_id)

    def _push(self, user_id: RecordId, payload: Dict[str, Any]) -> bool:
        if self.offline:
            self._pending[str(user_id)] = payload
            return False
        if self.client.push_user_data(user_id, payload) is None:
            self._pending[str(user_id)] = payload
            return False
        self._pending.pop(str(user_id), None)
        self._mark_synced()
        self._emit("data:synced", {"user_id": user_id, "timestamp": self.last_sync_time})
        return True

    def _mark_synced(self) -> None:
        self.last_sync_time = utc_timestamp(self._clock())
        self.store.set(LAST_SYNC_KEY, self.last_sync_time)

    def sync_with_server(self) -> bool:
        """Reconcile the current user's bundle with the server; return whether a merge happened."""

        user = self.current_user()
        if user is None or self.offline or self.sync_in_progress:
            return False
        self.sync_in_progress = True
        try:
            server_payload = self.client.fetch_user_data(user.id)
            if server_payload is None:
                if str(user.id) in self._pending:
                    LOGGER.warning("Server copy unavailable, keeping queued save for user %s", user.id)
                return False
            self._mark_synced()
            server_bundle = {
                name: server_payload.get(name, [])
                for name in (*RECORD_COLLECTIONS, *CATEGORY_COLLECTIONS)
            }
            local_bundle = self.load_user_data(user.id).as_dict()
            if not has_changes(local_bundle, server_bundle):
                self._pending.pop(str(user.id), None)
                LOGGER.debug("Local and server data match, nothing to merge")
                return False
            resolved = UserData.from_dict(resolve_conflicts(local_bundle, server_bundle))
            self._persist(user.id, resolved)
            self._push(user.id, resolved.as_dict())
            LOGGER.info("Merged server data for user %s", user.id)
            self._emit("data:conflicts-resolved", {"user_id": user.id})
            return True
        finally:
            self.sync_in_progress = False

    def sync_stats(self) -> Dict[str, Any]:
        return {
            "last_sync_time": self.last_sync_time,
            "sync_in_progress": self.sync_in_progress,
            "offline": self.offline,
            "queue_length": len(self._pending),
            "cache_size": len(self._cache),
        }

    # ----------------------------------------------------------- transactions
    def get_transactions(self, filters: Optional[TransactionFilter] = None) -> List[Transaction]:
        transactions = list(self.current_data().transactions)
        if filters is None:
            return transactions
        return filters.apply(transactions, self._today())

    def add_transaction(self, payload: Mapping[str, Any]) -> Transaction:
        data = self.current_data()
        fields = _plain(payload)
        result = self.validator.validate_transaction(fields)
        if not result.valid:
            raise ValidationError("Invalid transaction", result.errors)
        now = utc_timestamp(self._clock())
        transaction = Transaction(
            id=next_record_id(t.id for t in data.transactions),
            type=TransactionType.from_str(fields["type"]),
            category=str(result.sanitized_data["category"]),
            amount=coerce_amount(fields["amount"]),
            date=parse_date(fields["date"]),
            description=str(result.sanitized_data.get("description") or ""),
            created=now,
            updated=now,
        )
        data.transactions.append(transaction)
        self.save_user_data(data)
        self._emit("data:transaction-added", transaction)
        LOGGER.info("Transaction %s added (%s %.2f)", transaction.id, transaction.type.value, transaction.amount)
        return transaction

    def delete_transaction(self, transaction_id: RecordId) -> None:
        data = self.current_data()
        remaining = [t for t in data.transactions if str(t.id) != str(transaction_id)]
        if len(remaining) == len(data.transactions):
            raise KeyError(f"Transaction {transaction_id} not found")
        data.transactions = remaining
        self.save_user_data(data)
        self._emit("data:transaction-deleted", transaction_id)
        LOGGER.info("Transaction %s deleted", transaction_id)

    # ------------------------------------------------------------- categories
    def add_category(self, transaction_type: TransactionType, label: str) -> bool:
        result = self.validator.validate_field("category", label)
        if not result.valid:
            raise ValidationError("Invalid category", {"category": result.errors})
        data = self.current_data()
        added = data.categories.add(transaction_type, str(result.sanitized_value))
        if added:
            self.save_user_data(data)
        return added

    def remove_category(self, transaction_type: TransactionType, label: str) -> bool:
        data = self.current_data()
        removed = data.categories.remove(transaction_type, label)
        if removed:
            self.save_user_data(data)
        return removed

    def move_category(self, transaction_type: TransactionType, label: str, position: int) -> None:
        data = self.current_data()
        data.categories.move(transaction_type, label, position)
        self.save_user_data(data)

    # ---------------------------------------------------------------- budgets
    def set_budget(self, category: str, limit: Any) -> Budget:
        """Create the budget for ``category`` or replace the existing one."""

        data = self.current_data()
        result = self.validator.validate_budget({"category": category, "limit": limit})
        if not result.valid:
            raise ValidationError("Invalid budget", result.errors)
        label = data.categories.find_label(TransactionType.EXPENSE, str(result.sanitized_data["category"]))
        if label is None:
            raise ValidationError("Invalid budget", {"category": [f"Unknown expense category: {category}"]})

        now = utc_timestamp(self._clock())
        for budget in data.budgets:
            if category_key(budget.category) == category_key(label):
                budget.limit = coerce_amount(limit)
                budget.category = label
                budget.updated = now
                break
        else:
            budget = Budget(
                id=next_record_id(b.id for b in data.budgets),
                category=label,
                limit=coerce_amount(limit),
                created=now,
                updated=now,
            )
            data.budgets.append(budget)
        self.save_user_data(data)
        LOGGER.info("Budget for %s set to %.2f", label, budget.limit)
        return budget

    def delete_budget(self, budget_id: RecordId) -> None:
        data = self.current_data()
        remaining = [b for b in data.budgets if str(b.id) != str(budget_id)]
        if len(remaining) == len(data.budgets):
            raise KeyError(f"Budget {budget_id} not found")
        data.budgets = remaining
        self.save_user_data(data)

    # ------------------------------------------------------------------ goals
    def get_goal(self, goal_id: RecordId) -> Goal:
        for goal in self.current_data().goals:
            if str(goal.id) == str(goal_id):
                return goal
        raise KeyError(f"Goal {goal_id} not found")

    def add_goal(self, payload: Mapping[str, Any]) -> Goal:
        data = self.current_data()
        fields = _plain(payload)
        result = self.validator.validate_goal(fields)
        if not result.valid:
            raise ValidationError("Invalid goal", result.errors)
        now = utc_timestamp(self._clock())
        goal = Goal(
            id=next_record_id(g.id for g in data.goals),
            name=str(result.sanitized_data["name"]),
            target=coerce_amount(fields.get("target")),
            saved=coerce_amount(fields.get("saved")),
            deadline=parse_date(fields.get("deadline")),
            created=now,
            updated=now,
        )
        data.goals.append(goal)
        self.save_user_data(data)
        LOGGER.info("Goal %s created with target %.2f", goal.id, goal.target)
        return goal

    def update_goal(self, goal_id: RecordId, **changes: Any) -> Goal:
        """Apply changes to ``name``, ``target``, ``saved`` or ``deadline``.

        ``saved`` may exceed ``target`` here; only creation enforces that.
        """

        goal = self.get_goal(goal_id)
        unsupported = set(changes) - {"name", "target", "saved", "deadline"}
        if unsupported:
            raise ValueError(f"Unsupported goal fields: {', '.join(sorted(unsupported))}")

        fields = _plain(changes)
        updates: Dict[str, Any] = {}
        errors: Dict[str, List[str]] = {}
        if "name" in fields:
            result = self.validator.validate_field("name", fields["name"], self.validator.rules["category"])
            if result.valid:
                updates["name"] = str(result.sanitized_value)
            else:
                errors["name"] = result.errors
        for amount_field in ("target", "saved"):
            if amount_field in fields:
                result = self.validator.validate_field(amount_field, fields[amount_field], self.validator.rules["amount"])
                if result.valid:
                    updates[amount_field] = coerce_amount(fields[amount_field])
                else:
                    errors[amount_field] = result.errors
        if "deadline" in fields:
            updates["deadline"] = parse_date(fields["deadline"])
        if errors:
            raise ValidationError("Invalid goal", errors)

        for name, value in updates.items():
            setattr(goal, name, value)
        goal.updated = utc_timestamp(self._clock())
        self.save_user_data(self.current_data())
        return goal

    def contribute_to_goal(self, goal_id: RecordId, amount: Any) -> Goal:
        result = self.validator.validate_amount(amount)
        if not result.valid:
            raise ValidationError("Invalid contribution", {"amount": result.errors})
        goal = self.get_goal(goal_id)
        return self.update_goal(goal_id, saved=round(goal.saved + float(result.sanitized_value), 2))

    def delete_goal(self, goal_id: RecordId) -> None:
        data = self.current_data()
        remaining = [g for g in data.goals if str(g.id) != str(goal_id)]
        if len(remaining) == len(data.goals):
            raise KeyError(f"Goal {goal_id} not found")
        data.goals = remaining
        self.store.remove(plan_key(goal_id))
        self.save_user_data(data)

    def get_plan(self, goal_id: RecordId) -> Dict[str, bool]:
        plan = self.store.get(plan_key(goal_id), {})
        return {str(day): value is True for day, value in plan.items()} if isinstance(plan, Mapping) else {}

    def set_plan_day(self, goal_id: RecordId, day: date, checked: bool = True) -> Dict[str, bool]:
        """Tick or untick one calendar day of a goal's plan."""

        self.get_goal(goal_id)
        plan = self.get_plan(goal_id)
        plan[day.isoformat()] = bool(checked)
        self.store.set(plan_key(goal_id), plan)
        return plan

    def goal_projection(self, goal_id: RecordId) -> GoalProjection:
        return project_goal(self.get_goal(goal_id), self.get_plan(goal_id), self._today())

    def close_plan(self, goal_id: RecordId) -> Goal:
        """Fold the plan's expected savings into ``saved`` and clear the plan."""

        goal = self.get_goal(goal_id)
        goal.saved = fold_plan(goal, self.get_plan(goal_id), self._today())
        goal.updated = utc_timestamp(self._clock())
        self.store.remove(plan_key(goal_id))
        self.save_user_data(self.current_data())
        LOGGER.info("Plan for goal %s closed, saved is now %.2f", goal.id, goal.saved)
        return goal

    # -------------------------------------------------------------- dashboard
    def dashboard(self, today: Optional[date] = None) -> DashboardSnapshot:
        data = self.current_data()
        plans = {goal.id: self.get_plan(goal.id) for goal in data.goals}
        return build_dashboard(
            data.transactions,
            data.categories,
            data.budgets,
            data.goals,
            plans,
            today=today or self._today(),
        )

    # --------------------------------------------------------- export/import
    def export_data(
        self,
        *,
        include_transactions: bool = True,
        include_categories: bool = True,
        include_budgets: bool = True,
        include_goals: bool = True,
    ) -> Dict[str, Any]:
        user = self._require_user()
        bundle = self.load_user_data(user.id).as_dict()
        selected: Dict[str, Any] = {}
        if include_transactions:
            selected["transactions"] = bundle["transactions"]
        if include_categories:
            selected["incomeCategories"] = bundle["incomeCategories"]
            selected["expenseCategories"] = bundle["expenseCategories"]
        if include_budgets:
            selected["budgets"] = bundle["budgets"]
        if include_goals:
            selected["goals"] = bundle["goals"]
        return {
            "user": {"id": user.id, "name": user.name, "email": user.email},
            "exportDate": utc_timestamp(self._clock()),
            "version": EXPORT_VERSION,
            "data": selected,
        }

    def import_data(
        self,
        payload: Mapping[str, Any],
        *,
        merge_transactions: bool = True,
        merge_categories: bool = True,
        merge_budgets: bool = True,
        merge_goals: bool = True,
    ) -> UserData:
        """Merge an exported bundle into the current data with last-write-wins rules."""

        incoming = payload.get("data") if isinstance(payload, Mapping) else None
        if not isinstance(incoming, Mapping):
            raise ValueError("Import payload must contain a 'data' object")
        user = self._require_user()
        include: List[str] = []
        if merge_transactions:
            include.append("transactions")
        if merge_categories:
            include.extend(CATEGORY_COLLECTIONS)
        if merge_budgets:
            include.append("budgets")
        if merge_goals:
            include.append("goals")
        merged = UserData.from_dict(merge_collections(self.load_user_data(user.id).as_dict(), incoming, include))
        self._persist(user.id, merged)
        self._push(user.id, merged.as_dict())
        self._emit("data:imported", {"user_id": user.id, "collections": include})
        LOGGER.info("Imported %s for user %s", ", ".join(include), user.id)
        return merged
