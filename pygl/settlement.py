"""Routing of postings through settlement accounts.

Accounts may restrict the commodities they accept. When a posting moves a
commodity that one side does not accept, the flow is redirected through that
account's settlement account, which converts between the foreign commodity
and the account's single native commodity. Each side is rewritten at most
once, hence a posting resolves to at most three legs.
"""

from typing import Dict, List, Tuple
from .currency_converter import CurrencyConverter
from .exceptions import LedgerError
from .helpers import accepts_commodity, single_commodity
from .posting import Posting


def settlement_legs(
    posting: Posting, chart: Dict[str, dict], converter: CurrencyConverter
) -> List[Posting]:
    """Split a posting into balanced legs that each account accepts.

    Args:
        posting (Posting): The proposed transaction.
        chart (Dict[str, dict]): Chart of accounts by account identifier.
        converter (CurrencyConverter): Converts into native account commodities.

    Returns:
        List[Posting]: One to three legs. All legs carry the original base
            currency amount.

    Raises:
        LedgerError: If an account does not accept the commodity and cannot
            be settled.
    """
    if posting.amount is None or posting.amount == 0:
        return [posting]

    legs = [posting]
    if not accepts_commodity(posting.account, posting.commodity):
        settlement, native, native_amount = _settlement(
            posting.account, posting, chart, converter
        )
        legs = [
            posting._replace(contra=settlement, amount=native_amount, commodity=native),
            posting._replace(account=settlement),
        ]

    last = legs[-1]
    if not accepts_commodity(last.contra, last.commodity):
        settlement, native, native_amount = _settlement(last.contra, last, chart, converter)
        legs[-1:] = [
            last._replace(contra=settlement),
            last._replace(account=settlement, amount=native_amount, commodity=native),
        ]

    return legs


def _settlement(
    account: dict, posting: Posting, chart: Dict[str, dict], converter: CurrencyConverter
) -> Tuple[dict, str, float]:
    """Settlement account, native commodity and converted amount for `account`."""
    native = single_commodity(account)
    settlement_id = account.get("settlement_account")
    if settlement_id is None:
        raise LedgerError(
            f"Account '{account['account']}' doesn't accept '{posting.commodity}'. "
            f"'settlement_account' is not configured.",
            account=account["account"], commodity=posting.commodity, date=posting.date,
        )
    settlement = chart.get(settlement_id)
    if settlement is None:
        raise LedgerError(
            f"Settlement account '{settlement_id}' not found.",
            account=account["account"], date=posting.date,
        )
    for commodity in (posting.commodity, native):
        if not accepts_commodity(settlement, commodity):
            raise LedgerError(
                f"Settlement account '{settlement_id}' doesn't accept '{commodity}'.",
                account=settlement_id, commodity=commodity, date=posting.date,
            )
    native_amount = converter.convert(posting.amount, posting.commodity, posting.date, native)
    return settlement, native, native_amount
