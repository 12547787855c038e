"""Mini README: Declarative field and form validation.

Structure:
    * FieldRule - required-ness, length, numeric range and pattern for a field.
    * FieldResult / FormResult - outcomes carrying errors and sanitised values.
    * Validator - rule table plus bespoke email, password, date and amount
      checks and the composite transaction, registration, goal and budget
      validators.

Length, range and pattern constraints are checked by pydantic type adapters
built from each ``FieldRule``; their error types map onto the messages
below. Password scoring is shared with ``finassist.security``.

Sanitisation trims, collapses whitespace and strips angle brackets. It is
not an HTML sanitiser and offers no real XSS protection; anything rendered
as markup must be escaped by the renderer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import date
from functools import lru_cache
from typing import Annotated, Any, Callable, Dict, List, Mapping, Optional, Pattern

from pydantic import ConfigDict, Field, StringConstraints, TypeAdapter, ValidationError

from ..security import PasswordStrength, password_strength

AMOUNT_MAX = 999_999_999.99
MIN_DATE = date(1900, 1, 1)
SANITIZED_MAX_LENGTH = 1000

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MESSAGES = {
    "required": "This field is required",
    "min_length": "Minimum length: {min} characters",
    "max_length": "Maximum length: {max} characters",
    "pattern": "Invalid format",
    "min_value": "Minimum value: {min}",
    "max_value": "Maximum value: {max}",
    "password": "Password needs upper and lower case letters, digits and special characters",
    "name": "Name may contain only letters, spaces and hyphens",
    "amount": "Enter a valid amount",
    "deadline": "Enter a valid date in YYYY-MM-DD format",
    "category": "Category may contain only letters, digits, spaces and hyphens",
    "type": "Type must be income or expense",
}

# Lookaheads in the password rule need Python's regex engine.
ADAPTER_CONFIG = ConfigDict(regex_engine="python-re")


@dataclass(frozen=True)
class FieldRule:
    """Declarative checks for one field."""

    required: bool = True
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    pattern: Optional[Pattern[str]] = None
    sanitize: bool = False
    kind: Optional[str] = None
    check: Optional[Callable[[str], List[str]]] = None


@dataclass
class FieldResult:
    valid: bool = True
    sanitized_value: Any = None
    errors: List[str] = field(default_factory=list)

    def fail(self, *messages: str) -> None:
        self.valid = False
        self.errors.extend(messages)


@dataclass
class FormResult:
    valid: bool = True
    errors: Dict[str, List[str]] = field(default_factory=dict)
    sanitized_data: Dict[str, Any] = field(default_factory=dict)

    def fail(self, field_name: str, *messages: str) -> None:
        self.valid = False
        self.errors.setdefault(field_name, []).extend(messages)


def sanitize(value: Any) -> Any:
    """Trim, collapse whitespace and drop ``<``/``>`` from strings."""

    if not isinstance(value, str):
        return value
    cleaned = re.sub(r"\s+", " ", value.strip())
    return re.sub(r"[<>]", "", cleaned)[:SANITIZED_MAX_LENGTH]


def is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, tuple)) and len(value) == 0)


def _format_number(value: float) -> str:
    return f"{value:g}" if abs(value) < 1e6 else f"{value:.2f}"


@lru_cache(maxsize=None)
def _text_adapter(min_length: Optional[int], max_length: Optional[int], pattern: Optional[str]) -> TypeAdapter:
    constraints = StringConstraints(min_length=min_length or None, max_length=max_length or None, pattern=pattern)
    return TypeAdapter(Annotated[str, constraints], config=ADAPTER_CONFIG)


@lru_cache(maxsize=None)
def _number_adapter(min_value: Optional[float], max_value: Optional[float]) -> TypeAdapter:
    return TypeAdapter(Annotated[float, Field(ge=min_value, le=max_value)])


def constraint_errors(rule: FieldRule, text: str, field_name: str) -> List[str]:
    """Run the rule's length, range and pattern constraints through pydantic."""

    failures: List[Dict[str, Any]] = []
    try:
        _text_adapter(rule.min_length, rule.max_length, rule.pattern.pattern if rule.pattern else None).validate_python(text)
    except ValidationError as error:
        failures.extend(error.errors())
    if rule.min_value is not None or rule.max_value is not None:
        number = _leading_float(text)
        if number is not None:
            try:
                _number_adapter(rule.min_value, rule.max_value).validate_python(number)
            except ValidationError as error:
                failures.extend(error.errors())

    messages: List[str] = []
    for failure in failures:
        kind = failure["type"]
        if kind == "string_too_short":
            messages.append(MESSAGES["min_length"].format(min=rule.min_length))
        elif kind == "string_too_long":
            messages.append(MESSAGES["max_length"].format(max=rule.max_length))
        elif kind == "string_pattern_mismatch":
            messages.append(MESSAGES.get(rule.kind or field_name, MESSAGES["pattern"]))
        elif kind == "greater_than_equal":
            messages.append(MESSAGES["min_value"].format(min=_format_number(rule.min_value)))
        elif kind == "less_than_equal":
            messages.append(MESSAGES["max_value"].format(max=_format_number(rule.max_value)))
        else:
            messages.append(failure["msg"])
    return messages


class Validator:
    """Validate single fields or whole forms against a rule table."""

    def __init__(self, today: Optional[Callable[[], date]] = None) -> None:
        self._today = today or date.today
        self.rules: Dict[str, FieldRule] = {
            "text": FieldRule(min_length=1, max_length=255, sanitize=True),
            "email": FieldRule(sanitize=True, kind="email"),
            "name": FieldRule(
                min_length=2,
                max_length=50,
                pattern=re.compile(r"^[a-zA-Zа-яА-ЯёЁ\s-]+$"),
                sanitize=True,
                kind="name",
            ),
            "password": FieldRule(
                max_length=128,
                pattern=re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]"),
                kind="password",
            ),
            "amount": FieldRule(
                min_value=0,
                max_value=AMOUNT_MAX,
                pattern=re.compile(r"^\d+(\.\d{1,2})?$"),
                kind="amount",
            ),
            "date": FieldRule(kind="date"),
            "description": FieldRule(required=False, max_length=500, sanitize=True),
            "category": FieldRule(
                min_length=2,
                max_length=50,
                pattern=re.compile(r"^[a-zA-Zа-яА-ЯёЁ0-9\s-]+$"),
                sanitize=True,
                kind="category",
            ),
            "type": FieldRule(pattern=re.compile(r"^(income|expense)$"), kind="type"),
        }

    def rule(self, name: str, **overrides: Any) -> FieldRule:
        """Return a named rule, optionally with some attributes replaced."""

        base = self.rules.get(name, FieldRule())
        return replace(base, **overrides) if overrides else base

    # ------------------------------------------------------------------ fields
    def validate_field(self, field_name: str, value: Any, rule: Optional[FieldRule] = None) -> FieldResult:
        """Check ``value`` against ``rule`` (or the rule registered for ``field_name``)."""

        rule = rule or self.rules.get(field_name, FieldRule())
        result = FieldResult(sanitized_value=value)

        if is_empty(value):
            if rule.required:
                result.fail(MESSAGES["required"])
            return result

        text = _as_text(value)
        if rule.sanitize:
            result.sanitized_value = sanitize(text)

        result.errors.extend(constraint_errors(rule, text, field_name))

        if rule.kind == "email":
            result.errors.extend(self.validate_email(text))
        elif rule.kind == "password":
            report = self.validate_password(text)
            result.errors.extend(error for error in report.errors if error not in result.errors)
        elif rule.kind == "date":
            result.errors.extend(self.validate_date(text))
        if rule.check is not None:
            result.errors.extend(rule.check(text))
        if result.errors:
            result.valid = False
        return result

    def validate_form(self, data: Mapping[str, Any], rules: Mapping[str, FieldRule]) -> FormResult:
        result = FormResult()
        for field_name, rule in rules.items():
            outcome = self.validate_field(field_name, data.get(field_name), rule)
            if not outcome.valid:
                result.fail(field_name, *outcome.errors)
            result.sanitized_data[field_name] = outcome.sanitized_value
        return result

    # ---------------------------------------------------------- bespoke checks
    def validate_email(self, email: str) -> List[str]:
        """Return email-specific errors; an empty list means the address is acceptable."""

        if not email or not isinstance(email, str):
            return ["Email is required"]
        errors: List[str] = []
        if not EMAIL_PATTERN.match(email):
            errors.append("Invalid email format")
        if len(email) > 254:
            errors.append("Email is too long (254 characters at most)")
        local_part, _, domain = email.partition("@")
        if len(local_part) > 64:
            errors.append("Email local part is too long")
        if len(domain) > 253:
            errors.append("Email domain is too long")
        return errors

    def validate_password(self, password: str) -> PasswordStrength:
        """Length, blocklist and composition scoring shared with the security helpers."""

        return password_strength(password)

    def validate_date(self, value: str) -> List[str]:
        """Format, calendar, not-in-future and not-before-1900 checks."""

        if not value:
            return ["Date is required"]
        if not DATE_PATTERN.match(value):
            return ["Invalid date format (YYYY-MM-DD)"]
        try:
            parsed = date.fromisoformat(value)
        except ValueError:
            return ["Invalid date"]
        errors: List[str] = []
        if parsed > self._today():
            errors.append("Date cannot be in the future")
        if parsed < MIN_DATE:
            errors.append("Date cannot be earlier than 1900")
        return errors

    def validate_amount(self, value: Any) -> FieldResult:
        """Parse a user-entered amount, accepting a decimal comma."""

        result = FieldResult()
        if is_empty(value):
            result.fail("Amount is required")
            return result
        number = _leading_float(str(value).replace(",", "."))
        if number is None:
            result.fail("Invalid amount format")
            return result
        result.sanitized_value = number
        if number < 0:
            result.fail("Amount cannot be negative")
        if number > AMOUNT_MAX:
            result.fail("Amount is too large")
        fraction = repr(number).split(".")[1] if "." in repr(number) else ""
        if "e" not in repr(number) and len(fraction) > 2:
            result.fail("At most 2 decimal places")
        return result

    # ------------------------------------------------------------- composites
    def validate_transaction(self, transaction: Mapping[str, Any]) -> FormResult:
        return self.validate_form(
            transaction,
            {
                "type": self.rules["type"],
                "category": self.rules["category"],
                "amount": self.rules["amount"],
                "date": self.rules["date"],
                "description": self.rules["description"],
            },
        )

    def validate_registration(self, payload: Mapping[str, Any]) -> FormResult:
        password = payload.get("password")
        confirm_rule = FieldRule(
            check=lambda value: [] if value == password else ["Passwords do not match"],
        )
        return self.validate_form(
            payload,
            {
                "name": self.rules["name"],
                "email": self.rules["email"],
                "password": self.rules["password"],
                "password_confirm": confirm_rule,
            },
        )

    def validate_goal(self, goal: Mapping[str, Any]) -> FormResult:
        result = self.validate_form(
            goal,
            {
                "name": self.rules["category"],
                "target": self.rules["amount"],
                "saved": self.rule("amount", required=False),
                "deadline": FieldRule(required=False, pattern=DATE_PATTERN, kind="deadline"),
            },
        )
        target = _leading_float(_as_text(goal.get("target")))
        saved = _leading_float(_as_text(goal.get("saved")))
        if target is not None and target <= 0:
            result.fail("target", "Target must be greater than zero")
        if target is not None and saved is not None and saved > target:
            result.fail("saved", "Saved amount cannot exceed the target")
        deadline = goal.get("deadline")
        if not is_empty(deadline) and "deadline" not in result.errors:
            try:
                parsed = date.fromisoformat(_as_text(deadline))
            except ValueError:
                result.fail("deadline", "Invalid date")
            else:
                if parsed <= self._today():
                    result.fail("deadline", "Deadline must be in the future")
        return result

    def validate_budget(self, budget: Mapping[str, Any]) -> FormResult:
        result = self.validate_form(
            budget,
            {"category": self.rules["category"], "limit": self.rules["amount"]},
        )
        limit = _leading_float(_as_text(budget.get("limit")))
        if limit is not None and limit <= 0 and "limit" not in result.errors:
            result.fail("limit", "Limit must be greater than zero")
        return result


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


_LEADING_NUMBER = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


def _leading_float(text: str) -> Optional[float]:
    """Parse the leading number of ``text`` the way form inputs are read."""

    match = _LEADING_NUMBER.match(text or "")
    if not match:
        return None
    return float(match.group(0))
