"""Conversion of amounts between commodities based on historical exchange
rates and prices.
"""

import datetime
import logging
from typing import Dict, Tuple
import numpy as np
import pandas as pd
from consistent_df import enforce_schema
from .constants import CURRENCY_SCHEMA, DEFAULT_PRECISION, PRICE_SCHEMA
from .helpers import first_elements_as_str, round_to_precision

History = Tuple[np.ndarray, np.ndarray]


class CurrencyConverter:
    """Convert amounts between currencies, priced assets and the base currency.

    Currency records state the value of one unit of a currency in base
    currency, valid from their date until the next observation. Price records
    state the value of one unit of a ticker (a security, a commodity, ...) in
    a currency, which is in turn converted to the base currency. Conversions
    use the latest observation on or before the requested date and are
    rounded to the precision of the target commodity.
    """

    def __init__(
        self,
        currencies: pd.DataFrame,
        prices: pd.DataFrame,
        base_currency: str,
        precision: Dict[str, float] | None = None,
    ):
        """Initialize the converter from currency and price history.

        Args:
            currencies (pd.DataFrame): Exchange rates with CURRENCY_SCHEMA.
            prices (pd.DataFrame): Asset prices with PRICE_SCHEMA.
            base_currency (str): Currency into which amounts are converted by default.
            precision (dict, optional): Rounding increment per commodity. Commodities
                not listed are rounded to DEFAULT_PRECISION.
        """
        self._logger = logging.getLogger("ledger")
        self._base_currency = base_currency
        self._precision = dict(precision or {})
        self._rates = self._histories(self.sanitize_currencies(currencies), "currency", "rate")
        self._prices = {
            ticker: self._histories(group, "currency", "price")
            for ticker, group in self.sanitize_prices(prices).groupby("ticker", sort=False)
        }

    @property
    def base_currency(self) -> str:
        return self._base_currency

    # ----------------------------------------------------------------------
    # Sanitizing

    def sanitize_currencies(self, df: pd.DataFrame) -> pd.DataFrame:
        """Discard exchange rates that are missing or not strictly positive."""
        return self._sanitize(df, CURRENCY_SCHEMA, "currency", "rate")

    def sanitize_prices(self, df: pd.DataFrame) -> pd.DataFrame:
        """Discard prices that are missing or not strictly positive."""
        return self._sanitize(df, PRICE_SCHEMA, "ticker", "price")

    def _sanitize(self, df, schema: pd.DataFrame, key: str, value: str) -> pd.DataFrame:
        if not isinstance(df, pd.DataFrame):
            df = pd.DataFrame(df)
        df = enforce_schema(df, schema, keep_extra_columns=True)

        incomplete = df[schema["column"]].isna().any(axis=1)
        if incomplete.any():
            invalid = df.loc[incomplete, key].dropna().unique().tolist()
            self._logger.warning(
                f"Discarding {incomplete.sum()} {value} records with missing values: "
                f"{first_elements_as_str(invalid)}."
            )
            df = df.loc[~incomplete]

        non_positive = df[value] <= 0
        if non_positive.any():
            invalid = df.loc[non_positive, key].unique().tolist()
            self._logger.warning(
                f"Discarding {non_positive.sum()} non-positive {value} records: "
                f"{first_elements_as_str(invalid)}."
            )
            df = df.loc[~non_positive]

        return df.reset_index(drop=True)

    @staticmethod
    def _histories(df: pd.DataFrame, key: str, value: str) -> Dict[str, History]:
        """Organize observations by `key` as date-sorted arrays for quick lookup."""
        result = {}
        for name, group in df.groupby(key, sort=False):
            group = group.sort_values("date", kind="stable")
            result[name] = (
                group["date"].to_numpy(dtype="datetime64[ns]"),
                group[value].to_numpy(dtype=float),
            )
        return result

    # ----------------------------------------------------------------------
    # Conversion

    def precision(self, commodity: str) -> float:
        return self._precision.get(commodity, DEFAULT_PRECISION)

    def round(self, amount: float, commodity: str) -> float:
        """Round an amount to the precision of the given commodity."""
        return round_to_precision(amount, self.precision(commodity))

    def unit_value(self, commodity: str, date: datetime.date) -> float:
        """Value of one unit of `commodity` in base currency as of `date`.

        Raises:
            ValueError: If no exchange rate or price is available.
        """
        return self._unit_value(commodity, date, frozenset())

    def _unit_value(self, commodity: str, date: datetime.date, seen: frozenset) -> float:
        if commodity == self._base_currency:
            return 1.0
        if commodity in self._rates:
            return self._lookup(self._rates[commodity], date, f"'{commodity}' exchange rate")
        if commodity in self._prices and commodity not in seen:
            by_currency = self._prices[commodity]
            if self._base_currency in by_currency:
                currency = self._base_currency
            else:
                currency = next(iter(by_currency))
            price = self._lookup(by_currency[currency], date, f"{currency} price for '{commodity}'")
            return price * self._unit_value(currency, date, seen | {commodity})
        raise ValueError(f"No exchange rate or price available for '{commodity}'.")

    @staticmethod
    def _lookup(history: History, date: datetime.date, label: str) -> float:
        dates, values = history
        idx = np.searchsorted(dates, pd.Timestamp(date).to_datetime64(), side="right") - 1
        if idx < 0:
            raise ValueError(f"No {label} available on or before {date}.")
        return float(values[idx])

    def convert(
        self,
        amount: float,
        commodity: str,
        date: datetime.date,
        target: str | None = None,
    ) -> float:
        """Convert an amount from one commodity to another.

        Args:
            amount (float): Amount denominated in `commodity`.
            commodity (str): Commodity of the amount.
            date (datetime.date): Date as of which rates and prices are applied.
            target (str, optional): Commodity to convert into. Defaults to the
                base currency.

        Returns:
            float: The converted amount, rounded to the precision of `target`.
                Amounts already denominated in `target` are returned unchanged.
        """
        target = self._base_currency if target is None else target
        if commodity == target:
            return amount
        value = amount * self.unit_value(commodity, date)
        if target != self._base_currency:
            value = value / self.unit_value(target, date)
        return self.round(value, target)
