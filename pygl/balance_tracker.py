"""Running balances per account and commodity."""

from typing import Dict, List, NamedTuple
import pandas as pd
from consistent_df import enforce_schema
from .constants import ACCOUNT_BALANCE_SCHEMA


class BalanceKey(NamedTuple):
    account: str
    commodity: str


class Balance(NamedTuple):
    commodity: str
    amount: float
    base_amount: float


class BalanceTracker:
    """Accumulates amounts and base currency amounts per (account, commodity).

    Entries are created on first touch and never removed. The tracker does
    not validate its input; it is pure bookkeeping.
    """

    def __init__(self):
        self._balances: Dict[BalanceKey, Balance] = {}

    def update(
        self, account: str, commodity: str, amount: float, base_amount: float
    ) -> Balance:
        """Add deltas to the balance of an account in a commodity.

        Returns:
            Balance: The balance after the update.
        """
        key = BalanceKey(account, commodity)
        current = self._balances.get(key)
        if current is None:
            balance = Balance(commodity, amount, base_amount)
        else:
            balance = Balance(
                commodity, current.amount + amount, current.base_amount + base_amount
            )
        self._balances[key] = balance
        return balance

    def get(self, account: str, commodity: str) -> Balance:
        """Current balance, registering the key with a zero balance if unknown."""
        return self.update(account, commodity, 0.0, 0.0)

    def keys(self, account: str | None = None) -> List[BalanceKey]:
        """Snapshot of the tracked keys in order of first touch.

        Args:
            account (str, optional): Restrict the result to this account.
        """
        return [key for key in self._balances if account is None or key.account == account]

    def __getitem__(self, key: BalanceKey) -> Balance:
        return self._balances[key]

    def __contains__(self, key) -> bool:
        return key in self._balances

    def __len__(self) -> int:
        return len(self._balances)

    def to_frame(self) -> pd.DataFrame:
        """Balances as a DataFrame with ACCOUNT_BALANCE_SCHEMA."""
        df = pd.DataFrame([
            {
                "account": key.account,
                "commodity": key.commodity,
                "amount": balance.amount,
                "base_amount": balance.base_amount,
            }
            for key, balance in self._balances.items()
        ])
        return enforce_schema(df, ACCOUNT_BALANCE_SCHEMA)
