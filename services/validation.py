"""Validation and normalization of incoming expense payloads."""
import logging
import math
from datetime import datetime
from typing import Any, Mapping

from models.expense import DEFAULT_CATEGORY, ExpenseFields
from services.errors import InvalidAmount, InvalidDate, InvalidTitle
from utils.dates import parse_date

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 3


def validate_title(raw: Any) -> str:
    # length is taken on the value as sent; whitespace-only titles are still empty
    if not isinstance(raw, str) or len(raw) < MIN_TITLE_LENGTH or not raw.strip():
        raise InvalidTitle(f"Title is required and must be at least {MIN_TITLE_LENGTH} characters.")
    return raw


def validate_amount(raw: Any) -> float:
    message = "Amount is required and must be greater than 0."
    # bool is an int subclass; True must not pass as 1
    if raw is None or isinstance(raw, bool):
        raise InvalidAmount(message)
    try:
        amount = float(raw)
    except (TypeError, ValueError) as e:
        raise InvalidAmount(message) from e
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidAmount(message)
    return amount


def validate_date(raw: Any) -> datetime:
    try:
        return parse_date(raw)
    except ValueError as e:
        raise InvalidDate("Valid date is required.") from e


def normalize_category(raw: Any) -> str:
    if raw is None:
        return DEFAULT_CATEGORY
    category = str(raw).strip()
    return category or DEFAULT_CATEGORY


def validate_expense(payload: Mapping[str, Any]) -> ExpenseFields:
    """
    Checks title, amount and date in that order and stops at the first failure.
    Returns the normalized fields ready to be written to the collection.
    """
    if not isinstance(payload, Mapping):
        logger.debug(f"Expense payload is not a mapping: {type(payload).__name__}")
        payload = {}
    title = validate_title(payload.get("title"))
    amount = validate_amount(payload.get("amount"))
    date = validate_date(payload.get("date"))
    return ExpenseFields(
        title=title,
        amount=amount,
        category=normalize_category(payload.get("category")),
        date=date,
    )
