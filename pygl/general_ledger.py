"""This module defines the GeneralLedgerBuilder class, which turns a chart of
accounts, journal entries and currency and price history into a general ledger
in base currency and in original transaction currency.
"""

import datetime
import logging
from typing import Dict, List
import pandas as pd
from consistent_df import enforce_schema
from .balance_tracker import BalanceTracker
from .constants import (
    ACCOUNT_BALANCE_SCHEMA,
    ACCOUNT_SCHEMA,
    DEFAULT_CONFIGURATION,
    GL_SCHEMA,
    JOURNAL_SCHEMA,
)
from .currency_converter import CurrencyConverter
from .exceptions import LedgerError
from .helpers import describe_entry, first_elements_as_str, to_records
from .posting import Posting, gl_lines
from .revaluation import revaluation_postings
from .settlement import settlement_legs
from .time import date_range, first_day_of_next_month, parse_date_span, to_date


class GeneralLedgerBuilder:
    """Builds the general ledger from journal entries.

    The builder walks calendar days from the first journal entry to the first
    day of the month following the later of the last journal entry and today.
    On each day it posts the day's journal entries, routing flows through
    settlement accounts where an account does not accept a commodity, and
    at month end it revalues balances held in commodities other than the base
    currency.

    The builder holds configuration only. All state of a build is private to
    the `build()` call, so a builder can be reused and shared.
    """

    _logger = None

    # ----------------------------------------------------------------------
    # Constructor

    def __init__(self, configuration: dict | None = None, today: datetime.date | None = None):
        """Initialize the builder.

        Args:
            configuration (dict, optional): Configuration with 'base_currency' and
                optional 'precision'. Defaults to DEFAULT_CONFIGURATION.
            today (datetime.date, optional): The ledger is processed at least up to
                the month end of this date. Defaults to the current date at build time.
        """
        self._logger = logging.getLogger("ledger")
        if configuration is None:
            configuration = DEFAULT_CONFIGURATION
        self._configuration = self.standardize_configuration(configuration)
        self._today = today

    # ----------------------------------------------------------------------
    # Configuration

    @staticmethod
    def standardize_configuration(configuration: dict) -> dict:
        """Validates and standardizes the 'configuration' dictionary.

        Example:
            configuration = {
                'base_currency': 'CHF',
                'precision': {'JPY': 1.0, 'BTC': 0.00000001},
            }
            GeneralLedgerBuilder.standardize_configuration(configuration)

        Args:
            configuration (dict): The configuration dictionary to be standardized.

        Returns:
            dict: Configuration with items 'base_currency' and 'precision'.

        Raises:
            ValueError: If 'configuration' is not a dictionary, 'base_currency' is
                        missing or not a string, or 'precision' does not map
                        commodities to positive numbers.
        """
        if not isinstance(configuration, dict):
            raise ValueError("'configuration' must be a dict.")

        base_currency = configuration.get("base_currency")
        if not isinstance(base_currency, str) or not base_currency.strip():
            raise ValueError("Missing/invalid 'base_currency' in configuration.")

        precision = configuration.get("precision", {})
        if not isinstance(precision, dict) or not all(
            isinstance(key, str) and isinstance(value, (int, float)) and value > 0
            for key, value in precision.items()
        ):
            raise ValueError("'precision' must map commodities to positive increments.")

        return {"base_currency": base_currency.strip(), "precision": dict(precision)}

    @property
    def configuration(self) -> dict:
        return dict(self._configuration)

    @property
    def base_currency(self) -> str:
        return self._configuration["base_currency"]

    @property
    def today(self) -> datetime.date:
        return datetime.date.today() if self._today is None else self._today

    # ----------------------------------------------------------------------
    # Input data

    def sanitize_accounts(self, df: pd.DataFrame) -> pd.DataFrame:
        """Standardize the chart of accounts.

        Accounts without identifier are discarded with a warning.

        Raises:
            LedgerError: If account identifiers are not unique.
        """
        if not isinstance(df, pd.DataFrame):
            df = pd.DataFrame(df)
        df = enforce_schema(df, ACCOUNT_SCHEMA, keep_extra_columns=True)
        df["account"] = df["account"].str.strip()

        missing_id = df["account"].isna() | (df["account"] == "")
        if missing_id.any():
            self._logger.warning(
                f"Discarding {missing_id.sum()} accounts without identifier: "
                f"{first_elements_as_str(df.loc[missing_id, 'name'].dropna().tolist())}."
            )
            df = df.loc[~missing_id]

        duplicated = df["account"].duplicated()
        if duplicated.any():
            duplicates = df.loc[duplicated, "account"].unique().tolist()
            raise LedgerError(
                f"Duplicate account identifiers: {first_elements_as_str(duplicates)}."
            )

        return df.reset_index(drop=True)

    def sanitize_journal(self, df: pd.DataFrame) -> pd.DataFrame:
        """Standardize journal entries and order them for processing.

        Undated entries are ignored. The remaining entries are sorted by date,
        with target balance entries placed after amount entries of the same day.
        The sort is stable, so entries otherwise keep their input order.
        """
        if not isinstance(df, pd.DataFrame):
            df = pd.DataFrame(df)
        df = enforce_schema(df, JOURNAL_SCHEMA, keep_extra_columns=True)

        undated = df["date"].isna()
        if undated.any():
            self._logger.info(f"Ignoring {undated.sum()} journal entries without date.")
            df = df.loc[~undated]

        df = df.assign(_is_target=df["target_balance"].notna().astype(bool))
        df = df.sort_values(["date", "_is_target"], kind="stable")
        return df.drop(columns="_is_target").reset_index(drop=True)

    def chart(self, accounts: pd.DataFrame) -> Dict[str, dict]:
        """Sanitized chart of accounts as dict of account records by identifier."""
        records = to_records(self.sanitize_accounts(accounts))
        return {record["account"]: record for record in records}

    def journal_entries(self, journal: pd.DataFrame) -> List[dict]:
        """Sanitized journal entries in processing order, dates as datetime.date."""
        entries = to_records(self.sanitize_journal(journal))
        for entry in entries:
            entry["date"] = to_date(entry["date"])
        return entries

    def converter(self, currencies: pd.DataFrame, prices: pd.DataFrame) -> CurrencyConverter:
        """Currency converter for the configured base currency and precision."""
        return CurrencyConverter(
            currencies, prices,
            base_currency=self.base_currency,
            precision=self._configuration["precision"],
        )

    # ----------------------------------------------------------------------
    # General ledger

    def build(
        self,
        accounts: pd.DataFrame,
        journal: pd.DataFrame,
        currencies: pd.DataFrame,
        prices: pd.DataFrame,
    ) -> pd.DataFrame:
        """Build the general ledger.

        Args:
            accounts (pd.DataFrame): Chart of accounts with ACCOUNT_SCHEMA.
            journal (pd.DataFrame): Journal entries with JOURNAL_SCHEMA.
            currencies (pd.DataFrame): Exchange rates with CURRENCY_SCHEMA.
            prices (pd.DataFrame): Asset prices with PRICE_SCHEMA.

        Returns:
            pd.DataFrame: General ledger lines with GL_SCHEMA in chronological
                order, two lines per posting. Empty if there are no dated
                journal entries.

        Raises:
            LedgerError: If any journal entry or revaluation cannot be processed.
                No partial result is returned.
        """
        run = LedgerRun(self.chart(accounts), self.converter(currencies, prices))
        entries = self.journal_entries(journal)
        if entries:
            start = entries[0]["date"]
            end = first_day_of_next_month(max(entries[-1]["date"], self.today))
            run.process(entries, start, end)
        result = run.to_frame()
        self._logger.info(
            f"Built general ledger with {len(result)} lines from {len(entries)} "
            f"journal entries."
        )
        return result


class LedgerRun:
    """State of a single general ledger build.

    Holds the chart of accounts, the converter, the running balances and the
    ledger lines produced so far. A run is created per build and discarded
    afterwards.
    """

    def __init__(self, chart: Dict[str, dict], converter: CurrencyConverter):
        self._logger = logging.getLogger("ledger")
        self.chart = chart
        self.converter = converter
        self.balances = BalanceTracker()
        self.lines: List[dict] = []

    def process(self, entries: List[dict], start: datetime.date, end: datetime.date):
        """Post sorted journal entries and month-end revaluations day by day."""
        cursor = 0
        for day in date_range(start, end):
            cursor = self.post_journal_entries(entries, cursor, day)
            self.post_revaluations(day)

    def post_journal_entries(self, entries: List[dict], cursor: int, day: datetime.date) -> int:
        """Post all entries dated `day`, starting at position `cursor`.

        Returns:
            int: Position of the first entry not yet processed.
        """
        target_section = False
        while cursor < len(entries) and entries[cursor]["date"] <= day:
            entry = entries[cursor]
            cursor += 1
            try:
                if entry["target_balance"] is not None:
                    if entry["amount"] is not None:
                        raise LedgerError(
                            "Amount and target balance are both specified. Leave only one value."
                        )
                    current = self.balances.get(entry["account"], entry["commodity"])
                    amount = self.converter.round(
                        entry["target_balance"] - current.amount, entry["commodity"]
                    )
                    target_section = True
                elif entry["amount"] is None:
                    continue
                elif target_section:
                    raise LedgerError(
                        "Amount entries must precede target balance entries of the same day."
                    )
                else:
                    amount = entry["amount"]

                if amount == 0:
                    continue
                self.post_journal_entry(entry, amount, day)
            except Exception as e:
                raise LedgerError(
                    f"Journal processing error: {describe_entry(entry)}",
                    entry=entry, date=day,
                ) from e
        return cursor

    def post_journal_entry(self, entry: dict, amount: float, day: datetime.date):
        """Validate accounts and tags of a journal entry and post `amount`."""
        account = self.chart.get(entry["account"])
        if account is None:
            raise LedgerError(f"Account '{entry['account']}' not found.")
        contra = self.chart.get(entry["contra"])
        if contra is None:
            raise LedgerError(f"Offset account '{entry['contra']}' not found.")

        tag = entry["tag"]
        if account["tag"] is not None and account["tag"] != tag:
            raise LedgerError(
                f"'{account['account']}' account tag ({account['tag']}) doesn't match "
                f"journal entry tag ({tag})."
            )
        if contra["tag"] is not None and contra["tag"] != tag:
            raise LedgerError(
                f"'{contra['account']}' offset account tag ({contra['tag']}) doesn't match "
                f"journal entry tag ({tag})."
            )

        base_amount = self.converter.convert(amount, entry["commodity"], day)
        self.post(Posting(
            date=day,
            reconciled=entry["reconciled"],
            reference=entry["reference"],
            description=entry["description"],
            amount=amount,
            commodity=entry["commodity"],
            base_amount=base_amount,
            account=account,
            contra=contra,
            tag=tag,
            document=entry["document"],
        ))

    def post_revaluations(self, day: datetime.date, account: str | None = None):
        """Post revaluation corrections; a no-op before month end unless filtered."""
        for posting in revaluation_postings(
            self.balances, self.chart, self.converter, day, account=account
        ):
            self._logger.debug(
                f"Revaluation of '{posting.account['account']}' {posting.commodity} on "
                f"{day}: {posting.base_amount}"
            )
            self.post(posting)

    def post(self, posting: Posting):
        """Post a transaction: split into settlement legs, update balances and
        append two ledger lines per leg.
        """
        for leg in settlement_legs(posting, self.chart, self.converter):
            amount = 0.0 if leg.amount is None else leg.amount
            self.balances.update(leg.account["account"], leg.commodity, amount, leg.base_amount)
            self.balances.update(leg.contra["account"], leg.commodity, -amount, -leg.base_amount)
            self.lines.extend(gl_lines(leg))

    def to_frame(self) -> pd.DataFrame:
        """Ledger lines posted so far as a DataFrame with GL_SCHEMA."""
        return enforce_schema(pd.DataFrame(self.lines), GL_SCHEMA)


def build_general_ledger(
    accounts: pd.DataFrame,
    journal: pd.DataFrame,
    currencies: pd.DataFrame,
    prices: pd.DataFrame,
    configuration: dict | None = None,
    today: datetime.date | None = None,
) -> pd.DataFrame:
    """Build the general ledger in a single call.

    See `GeneralLedgerBuilder.build()` for arguments and result.
    """
    builder = GeneralLedgerBuilder(configuration=configuration, today=today)
    return builder.build(accounts, journal, currencies, prices)


def account_balances(gl: pd.DataFrame, period=None) -> pd.DataFrame:
    """Sum general ledger lines per account and commodity.

    Args:
        gl (pd.DataFrame): General ledger with GL_SCHEMA.
        period (datetime.date, str, int, optional): Restrict the sum to lines
            within a period, e.g. "2024", "2024-01", "2024-Q1", or a date to
            sum all lines up to and including that date. Defaults to None
            (all lines).

    Returns:
        pd.DataFrame: Balances with ACCOUNT_BALANCE_SCHEMA, in order of first
            appearance. Missing amounts count as zero.
    """
    gl = enforce_schema(gl, GL_SCHEMA, keep_extra_columns=True)
    start, end = parse_date_span(period)
    rows = pd.Series(True, index=gl.index)
    if start is not None:
        rows &= gl["date"] >= pd.Timestamp(start)
    if end is not None:
        rows &= gl["date"] <= pd.Timestamp(end)

    sub = gl.loc[rows, ["account", "commodity", "amount", "base_amount"]]
    sub = sub.assign(amount=sub["amount"].fillna(0.0))
    result = (
        sub.groupby(["account", "commodity"], sort=False)[["amount", "base_amount"]]
        .sum()
        .reset_index()
    )
    return enforce_schema(result, ACCOUNT_BALANCE_SCHEMA)
