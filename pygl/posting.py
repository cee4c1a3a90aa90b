"""Balanced postings and their expansion into general ledger lines."""

import datetime
from typing import NamedTuple


class Posting(NamedTuple):
    """A balanced transaction between two accounts.

    `account` receives `amount` and `base_amount`, `contra` receives the
    negation. Accounts are chart of accounts records (dicts). A missing
    `amount` denotes a base currency-only correction, as used for
    revaluations.
    """
    date: datetime.date
    reconciled: str | None
    reference: str | None
    description: str | None
    amount: float | None
    commodity: str
    base_amount: float
    account: dict
    contra: dict
    tag: str | None
    document: str | None


def _negate(x: float | None) -> float | None:
    # Adding 0.0 turns -0.0 into 0.0
    return None if x is None else -x + 0.0


def gl_lines(posting: Posting) -> tuple[dict, dict]:
    """Expand a posting into the two general ledger lines of double entry.

    The tag defaults to the tag of whichever account specifies one.
    """
    account, contra = posting.account, posting.contra
    tag = posting.tag or account.get("tag") or contra.get("tag")
    common = {
        "date": posting.date,
        "reconciled": posting.reconciled,
        "reference": posting.reference,
        "description": posting.description,
        "commodity": posting.commodity,
        "tag": tag,
        "document": posting.document,
    }

    def line(this: dict, other: dict, amount, base_amount) -> dict:
        return common | {
            "amount": amount,
            "base_amount": base_amount,
            "account": this["account"],
            "account_name": this.get("name"),
            "account_name1": this.get("name1"),
            "account_name2": this.get("name2"),
            "account_name3": this.get("name3"),
            "account_name4": this.get("name4"),
            "account_type": this.get("type"),
            "contra": other["account"],
            "contra_name": other.get("name"),
        }

    return (
        line(account, contra, posting.amount, posting.base_amount),
        line(contra, account, _negate(posting.amount), _negate(posting.base_amount)),
    )
