"""Month-end revaluation of balances held in commodities other than the
base currency.
"""

import datetime
from typing import Dict, List
from .balance_tracker import BalanceKey, BalanceTracker
from .constants import REVALUATION_MARKER
from .currency_converter import CurrencyConverter
from .exceptions import LedgerError
from .helpers import is_equity_account
from .posting import Posting
from .time import is_month_end


def revaluation_postings(
    balances: BalanceTracker,
    chart: Dict[str, dict],
    converter: CurrencyConverter,
    date: datetime.date,
    account: str | None = None,
) -> List[Posting]:
    """Compute postings that mark balances to their current base currency value.

    Without an account filter, revaluation only happens on the last day of a
    month and covers all tracked balances. With a filter, the balances of that
    account are revalued on any date.

    Each non-equity balance is valued at the current rate. If the value
    differs from the accumulated base currency amount, a posting without
    amount in the original commodity books the difference against the
    account's revaluation account, which must be an equity account.

    Args:
        balances (BalanceTracker): Running balances; not modified.
        chart (Dict[str, dict]): Chart of accounts by account identifier.
        converter (CurrencyConverter): Source of current rates.
        date (datetime.date): Valuation date.
        account (str, optional): Restrict revaluation to this account.

    Returns:
        List[Posting]: Correction postings, possibly empty.

    Raises:
        LedgerError: Wrapping the failure for the offending balance.
    """
    if account is None and not is_month_end(date):
        return []

    result = []
    for key in balances.keys(account):
        try:
            posting = _revaluation_posting(key, balances, chart, converter, date)
        except Exception as e:
            raise LedgerError(
                f"Revaluation error for '{key.account}' {key.commodity} on {date}.",
                account=key.account, commodity=key.commodity, date=date,
            ) from e
        if posting is not None:
            result.append(posting)
    return result


def _revaluation_posting(
    key: BalanceKey,
    balances: BalanceTracker,
    chart: Dict[str, dict],
    converter: CurrencyConverter,
    date: datetime.date,
) -> Posting | None:
    subject = chart.get(key.account)
    if subject is None:
        raise LedgerError(f"Account '{key.account}' not found.")
    if is_equity_account(subject):
        return None

    balance = balances[key]
    base_currency = converter.base_currency
    revalued = converter.convert(balance.amount, key.commodity, date)
    correction = converter.round(revalued - balance.base_amount, base_currency)
    if correction == 0:
        return None

    revaluation_id = subject.get("revaluation_account")
    revaluation = chart.get(revaluation_id) if revaluation_id is not None else None
    if revaluation is None:
        raise LedgerError(
            f"Revaluation account '{revaluation_id}' for '{key.account}' not found."
        )
    if not is_equity_account(revaluation):
        raise LedgerError(
            f"Revaluation account '{revaluation_id}' for '{key.account}' is not of "
            f"type 'E' (Equity)."
        )

    tag, revaluation_tag = subject.get("tag"), revaluation.get("tag")
    if tag is not None and revaluation_tag is not None and tag != revaluation_tag:
        raise LedgerError(
            f"'{key.account}' account tag ({tag}) doesn't match '{revaluation_id}' "
            f"revaluation account tag ({revaluation_tag})."
        )

    amount = converter.round(balance.amount, key.commodity)
    recorded = converter.round(balance.base_amount, base_currency)
    return Posting(
        date=date,
        reconciled=REVALUATION_MARKER,
        reference=None,
        description=f"{amount} {key.commodity}: {recorded} => {revalued}",
        amount=None,
        commodity=key.commodity,
        base_amount=correction,
        account=subject,
        contra=revaluation,
        tag=tag or revaluation_tag,
        document=None,
    )
