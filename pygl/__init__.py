# flake8: noqa: F401

"""pygl package

**pygl** builds a general ledger from a chart of accounts, journal entries and
currency and price history. The resulting ledger consists of balanced
double-entry lines in original transaction currency and in a single base
currency. Flows in commodities an account does not accept are routed through
settlement accounts, and balances held in foreign commodities are revalued at
each month end against equity revaluation accounts.

Inputs and output are pandas DataFrames following the schemas defined in
`pygl.constants`. Reading inputs from files and rendering reports is left to
the caller.
"""

from .general_ledger import (
    GeneralLedgerBuilder,
    LedgerRun,
    account_balances,
    build_general_ledger,
)
from .balance_tracker import Balance, BalanceKey, BalanceTracker
from .currency_converter import CurrencyConverter
from .exceptions import LedgerError
from .posting import Posting, gl_lines
from .revaluation import revaluation_postings
from .settlement import settlement_legs
from .helpers import *
from .time import *
from . import constants
