"""This module provides utilities shared by the general ledger components:
record conversion, commodity acceptance rules and account classification.
"""

import math
from typing import Any, List
import pandas as pd

from pygl.constants import ACCOUNT_TYPES, EQUITY_ACCOUNT
from pygl.exceptions import LedgerError


def first_elements_as_str(x: List[Any], n: int = 5) -> str:
    """
    Return a concise, comma-separated string of the first `n` elements of the list `x`.

    If the list has more than `n` elements, append "..." at the end.
    This is useful for logging or error messages when the full list
    would be too long to display.

    Args:
        x (List[Any]): The list to preview.
        n (int): The number of elements to include in the preview.

    Returns:
        str: A comma-separated preview of the first `n` elements, possibly ending in "...".
    """
    if x is None or len(x) == 0:
        return ""
    result = [str(i) for i in list(x)[:n]]
    if len(x) > n:
        result.append("...")
    return ", ".join(result)


def to_records(df: pd.DataFrame) -> list[dict]:
    """Convert a DataFrame to a list of dicts with missing values as None.

    Blank strings are treated as missing, as spreadsheet inputs rarely
    distinguish between an empty cell and an absent value.
    """
    def clean(value):
        if isinstance(value, str):
            return value.strip() or None
        return None if pd.isna(value) else value

    return [
        {key: clean(value) for key, value in row.items()}
        for row in df.to_dict("records")
    ]


def round_to_precision(amount: float, precision: float) -> float:
    """Round `amount` to a multiple of `precision`, e.g. 0.01 or 1.0."""
    scaled = round(amount / precision, 0) * precision
    return round(scaled, max(0, -1 * math.floor(math.log10(precision)))) + 0.0


def parse_commodities(spec: str | None) -> list[str]:
    """Split a comma-separated commodity acceptance list.

    Examples:
        >>> parse_commodities("USD, EUR")
        ['USD', 'EUR']
        >>> parse_commodities(None)
        []
    """
    if spec is None:
        return []
    return [item.strip() for item in spec.split(",") if item.strip()]


def accepts_commodity(account: dict, commodity: str) -> bool:
    """True if the account has no acceptance list or the list contains `commodity`."""
    accepted = parse_commodities(account.get("commodity"))
    return not accepted or commodity.strip() in accepted


def single_commodity(account: dict) -> str:
    """Return the only commodity an account accepts.

    Raises:
        LedgerError: If the account accepts any commodity or more than one.
    """
    accepted = parse_commodities(account.get("commodity"))
    if not accepted:
        raise LedgerError(
            f"Account '{account['account']}' accepts any commodity, settlement "
            f"commodity is undefined."
        )
    if len(accepted) > 1:
        raise LedgerError(
            f"Account settlement requires a single commodity: '{account['account']}' "
            f"accepts {', '.join(accepted)}."
        )
    return accepted[0]


def is_equity_account(account: dict) -> bool:
    """Classify an account as equity (True) or asset/liability (False).

    Raises:
        LedgerError: If the account type is not one of 'A', 'L' or 'E'.
    """
    account_type = account.get("type")
    if account_type not in ACCOUNT_TYPES:
        supported = ", ".join(f"'{code}' ({name})" for code, name in ACCOUNT_TYPES.items())
        raise LedgerError(
            f"Account '{account['account']}' has unsupported type: '{account_type}'. "
            f"Supported: {supported}.",
            account=account["account"],
        )
    return account_type == EQUITY_ACCOUNT


def describe_entry(entry: dict) -> str:
    """Short human-readable representation of a journal entry for error messages."""
    date = entry.get("date")
    date = date.strftime("%Y-%m-%d") if date is not None else "<no date>"
    if entry.get("target_balance") is not None:
        value = f"target balance {entry['target_balance']}"
    else:
        value = f"amount {entry.get('amount')}"
    result = (
        f"{date} {entry.get('account')} / {entry.get('contra')}: "
        f"{value} {entry.get('commodity')}"
    )
    if entry.get("reference") is not None:
        result = f"#{entry['reference']} {result}"
    if entry.get("description") is not None:
        result = f"{result} '{entry['description']}'"
    return result
