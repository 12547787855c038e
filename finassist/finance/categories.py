"""Mini README: Category lists and label/key normalisation.

Structure:
    * category_key - normalised lookup key for a display label.
    * CategoryBook - ordered, de-duplicated income and expense label lists.

Transactions reference categories by key (lowercase, whitespace runs turned
into hyphens) while budgets and reports use the display label. The book
resolves a key back to its label by scanning income labels first, then
expense labels; keys with no matching label resolve to themselves.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .models import TransactionType

DEFAULT_INCOME_CATEGORIES = ["Зарплата", "Фриланс", "Инвестиции", "Бонусы", "Подарки"]
DEFAULT_EXPENSE_CATEGORIES = [
    "Продукты",
    "Транспорт",
    "Развлечения",
    "ЖКХ",
    "Здоровье",
    "Образование",
    "Прочее",
]

_WHITESPACE = re.compile(r"\s+")


def category_key(label: str) -> str:
    """Return the lookup key used by transactions for ``label``."""

    return _WHITESPACE.sub("-", str(label or "").lower())


def unique_labels(*groups: Iterable[str]) -> List[str]:
    """Order-preserving union of label lists, skipping blanks."""

    seen: Dict[str, None] = {}
    for group in groups:
        for label in group or []:
            text = str(label).strip()
            if text and text not in seen:
                seen[text] = None
    return list(seen)


@dataclass(slots=True)
class CategoryBook:
    """Hold user-ordered category labels for both transaction types."""

    income: List[str] = field(default_factory=lambda: list(DEFAULT_INCOME_CATEGORIES))
    expense: List[str] = field(default_factory=lambda: list(DEFAULT_EXPENSE_CATEGORIES))

    def __post_init__(self) -> None:
        self.income = unique_labels(self.income)
        self.expense = unique_labels(self.expense)

    def labels(self, transaction_type: TransactionType) -> List[str]:
        return self.income if transaction_type is TransactionType.INCOME else self.expense

    def resolve_label(self, key: str) -> str:
        """Recover the display label for a transaction's category key."""

        for label in [*self.income, *self.expense]:
            if category_key(label) == key:
                return label
        return key

    def find_label(self, transaction_type: TransactionType, label_or_key: str) -> Optional[str]:
        """Return the stored label matching a label or key of the given type."""

        wanted = category_key(label_or_key)
        for label in self.labels(transaction_type):
            if category_key(label) == wanted:
                return label
        return None

    def add(self, transaction_type: TransactionType, label: str) -> bool:
        """Append a label unless an equivalent one exists; report whether it was added."""

        text = _WHITESPACE.sub(" ", str(label)).strip()
        if not text or self.find_label(transaction_type, text) is not None:
            return False
        self.labels(transaction_type).append(text)
        return True

    def remove(self, transaction_type: TransactionType, label: str) -> bool:
        existing = self.find_label(transaction_type, label)
        if existing is None:
            return False
        self.labels(transaction_type).remove(existing)
        return True

    def move(self, transaction_type: TransactionType, label: str, position: int) -> None:
        """Reorder a label within its list."""

        existing = self.find_label(transaction_type, label)
        if existing is None:
            raise KeyError(f"Category {label} not found")
        labels = self.labels(transaction_type)
        labels.remove(existing)
        labels.insert(max(0, min(position, len(labels))), existing)
