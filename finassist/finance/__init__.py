"""Mini README: Finance records and categories.

``DataManager`` lives in :mod:`finassist.finance.data_manager` and is imported
from there directly because it depends on the analytics package, which in
turn depends on these models.
"""

from .categories import (
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
    CategoryBook,
    category_key,
    unique_labels,
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

__all__ = [
    "Budget",
    "CategoryBook",
    "DEFAULT_EXPENSE_CATEGORIES",
    "DEFAULT_INCOME_CATEGORIES",
    "Goal",
    "RecordId",
    "Transaction",
    "TransactionType",
    "User",
    "category_key",
    "coerce_amount",
    "next_record_id",
    "parse_date",
    "unique_labels",
    "utc_timestamp",
]
