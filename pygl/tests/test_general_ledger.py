# flake8: noqa: E501

"""Test suite for building the general ledger."""

import datetime
import logging
import pandas as pd
import pytest
from consistent_df import assert_frame_equal
from pygl import GeneralLedgerBuilder, LedgerError, LedgerRun, account_balances
from pygl import build_general_ledger
from pygl.constants import GL_SCHEMA
from .base_test import BaseTest, read_journal


JOURNAL_CSV = """
          date, reference, account,     contra, commodity,   amount, target_balance, description
    2024-01-05,         1,   Sales,       Cash,       USD,  -100.00,               , Sell goods
    2024-01-10,         2, BankEUR,     Equity,       EUR,  1000.00,               , Capital in EUR
    2024-01-10,         3,    Cash,     Equity,       EUR,   100.00,               , EUR into USD account
    2024-01-12,         4,  Equity, Securities,      AAPL,    -2.00,               , Buy shares
    2024-01-15,         5,    Cash,      Sales,       USD,         ,         500.00, Adjust cash
    2024-01-15,         6,    Cash,      Sales,       USD,    50.00,               , Late sale
              ,         7,    Cash,      Sales,       USD,    99.00,               , Undated
    2024-02-03,         8, BankCHF,    BankEUR,       EUR,    10.00,               , Cross-currency transfer
"""


class TestGeneralLedger(BaseTest):

    def test_simple_entry(self, builder):
        gl = self.build(builder, """
                  date, account, contra, commodity, amount
            2024-01-05,   Sales,   Cash,       USD, -100.00
        """)
        assert self.lines(gl) == [
            {"date": pd.Timestamp("2024-01-05"), "account": "Sales", "contra": "Cash",
             "amount": -100.0, "commodity": "USD", "base_amount": -100.0},
            {"date": pd.Timestamp("2024-01-05"), "account": "Cash", "contra": "Sales",
             "amount": 100.0, "commodity": "USD", "base_amount": 100.0},
        ]

    def test_lines_carry_account_metadata(self, builder):
        gl = self.build(builder, """
                  date, reconciled, reference, account, contra, commodity, amount, description, document
            2024-01-05,          x,       A-1,   Sales,   Cash,       USD,   -100, Sell goods,  inv/001.pdf
        """)
        columns = [
            "reconciled", "reference", "description", "account_name", "account_name1",
            "account_name2", "account_type", "contra_name", "document",
        ]
        assert self.lines(gl, columns) == [
            {"reconciled": "x", "reference": "A-1", "description": "Sell goods",
             "account_name": "Sales revenue", "account_name1": "Revenue",
             "account_name2": "Operating", "account_type": "E",
             "contra_name": "Cash in Bank USD", "document": "inv/001.pdf"},
            {"reconciled": "x", "reference": "A-1", "description": "Sell goods",
             "account_name": "Cash in Bank USD", "account_name1": None,
             "account_name2": None, "account_type": "A",
             "contra_name": "Sales revenue", "document": "inv/001.pdf"},
        ]

    def test_foreign_currency_entry_is_converted_to_base_currency(self, builder):
        gl = self.build(builder, """
                  date, account, contra, commodity,  amount
            2024-01-10, BankEUR, Equity,       EUR, 1000.00
        """)
        assert gl["amount"].tolist() == [1000.0, -1000.0]
        assert gl["base_amount"].tolist() == [1100.0, -1100.0]

    def test_empty_journal(self, builder):
        journal = read_journal("""
                  date, account, contra, commodity, amount
                      ,    Cash,  Sales,       USD,    100
        """)
        gl = self.build(builder, journal)
        assert gl.empty
        assert set(gl.columns) == set(GL_SCHEMA["column"])

    def test_undated_entries_are_ignored(self, builder, caplog):
        caplog.set_level(logging.INFO, logger="ledger")
        gl = self.build(builder, """
                  date, account, contra, commodity, amount
                      ,    Cash,  Sales,       USD,    999
            2024-01-05,    Cash,  Sales,       USD,    100
        """)
        assert gl["amount"].tolist() == [100.0, -100.0]
        assert "Ignoring 1 journal entries without date" in caplog.text

    def test_entries_without_amount_are_skipped(self, builder):
        gl = self.build(builder, """
                  date, account, contra, commodity, amount
            2024-01-05,    Cash,  Sales,       USD,
            2024-01-06,    Cash,  Sales,       USD,    0.0
        """)
        assert gl.empty

    def test_target_balance(self, builder):
        gl = self.build(builder, """
                  date, account, contra, commodity, amount, target_balance
            2024-01-05,    Cash,  Sales,       USD,    100,
            2024-01-06,    Cash,  Sales,       USD,       ,            250
            2024-01-07,    Cash,  Sales,       USD,       ,            250
        """)
        # The second target balance is already met and produces no lines
        assert self.lines(gl, ["date", "account", "amount"]) == [
            {"date": pd.Timestamp("2024-01-05"), "account": "Cash", "amount": 100.0},
            {"date": pd.Timestamp("2024-01-05"), "account": "Sales", "amount": -100.0},
            {"date": pd.Timestamp("2024-01-06"), "account": "Cash", "amount": 150.0},
            {"date": pd.Timestamp("2024-01-06"), "account": "Sales", "amount": -150.0},
        ]

    def test_target_balance_follows_same_day_amount_entries(self, builder):
        gl = self.build(builder, """
                  date, account, contra, commodity, amount, target_balance
            2024-01-10,    Cash, Equity,       USD,       ,           1000
            2024-01-10,    Cash, Equity,       USD,    200,
            2024-01-05,    Cash, Equity,       USD,    100,
        """)
        cash = gl.query("account == 'Cash'")
        assert cash["amount"].tolist() == [100.0, 200.0, 700.0]
        assert cash["date"].tolist() == [
            pd.Timestamp("2024-01-05"), pd.Timestamp("2024-01-10"), pd.Timestamp("2024-01-10")
        ]

    def test_target_balance_of_untouched_account(self, builder):
        gl = self.build(builder, """
                  date, account, contra, commodity, amount, target_balance
            2024-01-10,    Cash, Equity,       USD,       ,            -40
        """)
        assert gl["amount"].tolist() == [-40.0, 40.0]

    def test_amount_and_target_balance_raises_error(self, builder):
        with pytest.raises(LedgerError, match="Journal processing error") as exc_info:
            self.build(builder, """
                      date, reference, account, contra, commodity, amount, target_balance
                2024-01-10,        42,    Cash, Equity,       USD,    100,            100
            """)
        assert exc_info.value.entry["reference"] == "42"
        assert exc_info.value.date == datetime.date(2024, 1, 10)
        assert "both specified" in str(exc_info.value.__cause__)

    def test_amount_after_target_balance_on_same_day_raises_error(self, builder, chart, converter):
        entries = builder.journal_entries(read_journal("""
                  date, account, contra, commodity, amount, target_balance
            2024-01-10,    Cash, Equity,       USD,       ,            100
            2024-01-11,    Cash, Equity,       USD,     50,
        """))
        # Force an ordering that sorting would never produce
        entries[1]["date"] = datetime.date(2024, 1, 10)
        run = LedgerRun(chart, converter)
        with pytest.raises(LedgerError, match="Journal processing error") as exc_info:
            run.post_journal_entries(entries, 0, datetime.date(2024, 1, 10))
        assert "must precede target balance" in str(exc_info.value.__cause__)

    @pytest.mark.parametrize("account, contra, message", [
        ("Unknown", "Cash", "Account 'Unknown' not found."),
        ("Cash", "Unknown", "Offset account 'Unknown' not found."),
    ])
    def test_missing_account_raises_error(self, builder, account, contra, message):
        journal = pd.DataFrame([{
            "date": "2024-01-05", "account": account, "contra": contra,
            "commodity": "USD", "amount": 10.0,
        }])
        with pytest.raises(LedgerError, match="Journal processing error") as exc_info:
            self.build(builder, journal)
        assert str(exc_info.value.__cause__) == message

    def test_tags(self, builder):
        gl = self.build(builder, """
                  date,     account,       contra, commodity, amount,      tag
            2024-01-05, ProjectCash, ProjectReval,       USD,    100, ProjectX
            2024-01-06,        Cash,        Sales,       USD,     10, Misc
        """)
        assert gl["tag"].tolist() == ["ProjectX", "ProjectX", "Misc", "Misc"]

    @pytest.mark.parametrize("account, contra, tag, message", [
        ("ProjectCash", "Equity", "ProjectY", "'ProjectCash' account tag"),
        ("Equity", "ProjectCash", None, "'ProjectCash' offset account tag"),
    ])
    def test_tag_mismatch_raises_error(self, builder, account, contra, tag, message):
        journal = pd.DataFrame([{
            "date": "2024-01-05", "account": account, "contra": contra,
            "commodity": "USD", "amount": 10.0, "tag": tag,
        }])
        with pytest.raises(LedgerError, match="Journal processing error") as exc_info:
            self.build(builder, journal)
        assert str(exc_info.value.__cause__).startswith(message)

    def test_settlement_of_source_account(self, builder):
        gl = self.build(builder, """
                  date, account, contra, commodity, amount
            2024-01-10,    Cash,  Sales,       EUR,    100
        """)
        date = pd.Timestamp("2024-01-10")
        assert self.lines(gl) == [
            {"date": date, "account": "Cash", "contra": "FX",
             "amount": 110.0, "commodity": "USD", "base_amount": 110.0},
            {"date": date, "account": "FX", "contra": "Cash",
             "amount": -110.0, "commodity": "USD", "base_amount": -110.0},
            {"date": date, "account": "FX", "contra": "Sales",
             "amount": 100.0, "commodity": "EUR", "base_amount": 110.0},
            {"date": date, "account": "Sales", "contra": "FX",
             "amount": -100.0, "commodity": "EUR", "base_amount": -110.0},
        ]

    def test_settlement_of_offset_account(self, builder):
        gl = self.build(builder, """
                  date, account,  contra, commodity, amount
            2024-01-10,   Sales, BankEUR,       USD,   -110
        """)
        assert self.lines(gl, ["account", "contra", "amount", "commodity"]) == [
            {"account": "Sales", "contra": "FX", "amount": -110.0, "commodity": "USD"},
            {"account": "FX", "contra": "Sales", "amount": 110.0, "commodity": "USD"},
            {"account": "FX", "contra": "BankEUR", "amount": -100.0, "commodity": "EUR"},
            {"account": "BankEUR", "contra": "FX", "amount": 100.0, "commodity": "EUR"},
        ]

    def test_settlement_without_settlement_account_raises_error(self, builder):
        with pytest.raises(LedgerError, match="Journal processing error") as exc_info:
            self.build(builder, """
                      date, account, contra, commodity, amount
                2024-01-10,   Loose,  Sales,       EUR,    100
            """)
        assert "'settlement_account' is not configured" in str(exc_info.value.__cause__)

    def test_revaluation_at_month_end(self):
        builder = GeneralLedgerBuilder(self.CONFIGURATION, today=datetime.date(2024, 2, 20))
        gl = self.build(builder, """
                  date, account, contra, commodity,  amount
            2024-01-10, BankEUR, Equity,       EUR, 1000.00
        """)
        assert len(gl) == 4
        revaluation = gl.iloc[2:]
        assert revaluation["date"].tolist() == [pd.Timestamp("2024-02-29")] * 2
        assert revaluation["account"].tolist() == ["BankEUR", "FXGain"]
        assert revaluation["contra"].tolist() == ["FXGain", "BankEUR"]
        assert revaluation["amount"].isna().all()
        assert revaluation["commodity"].tolist() == ["EUR", "EUR"]
        assert revaluation["base_amount"].tolist() == [100.0, -100.0]
        assert revaluation["reconciled"].tolist() == ["r", "r"]
        assert revaluation["description"].iloc[0] == "1000.0 EUR: 1100.0 => 1200.0"

    def test_no_revaluation_after_processed_period(self, builder):
        # Processing ends on 2024-02-01, before the EUR rate changes
        gl = self.build(builder, """
                  date, account, contra, commodity,  amount
            2024-01-10, BankEUR, Equity,       EUR, 1000.00
        """)
        assert len(gl) == 2

    def test_revaluation_of_priced_asset(self, builder):
        gl = self.build(builder, """
                  date,    account, contra, commodity, amount
            2024-01-12, Securities, Equity,      AAPL,      2
        """)
        assert self.lines(gl, ["date", "account", "amount", "base_amount"]) == [
            {"date": pd.Timestamp("2024-01-12"), "account": "Securities",
             "amount": 2.0, "base_amount": 360.0},
            {"date": pd.Timestamp("2024-01-12"), "account": "Equity",
             "amount": -2.0, "base_amount": -360.0},
            {"date": pd.Timestamp("2024-01-31"), "account": "Securities",
             "amount": None, "base_amount": 20.0},
            {"date": pd.Timestamp("2024-01-31"), "account": "FXGain",
             "amount": None, "base_amount": -20.0},
        ]

    def test_revaluation_tag_mismatch_raises_error(self, builder):
        accounts = self.ACCOUNTS.copy()
        accounts.loc[accounts["account"] == "ProjectCash", "revaluation_account"] = "OtherReval"
        with pytest.raises(LedgerError, match="Revaluation error for 'ProjectCash' AAPL"):
            self.build(builder, """
                      date,     account,       contra, commodity, amount,      tag
                2024-01-20, ProjectCash, ProjectReval,      AAPL,      1, ProjectX
            """, accounts=accounts)

    def test_unsupported_account_type_raises_error(self, builder):
        accounts = self.ACCOUNTS.copy()
        accounts.loc[accounts["account"] == "Securities", "type"] = "X"
        with pytest.raises(LedgerError, match="Revaluation error") as exc_info:
            self.build(builder, """
                      date,    account, contra, commodity, amount
                2024-01-12, Securities, Equity,      AAPL,      2
            """, accounts=accounts)
        assert "unsupported type: 'X'" in str(exc_info.value.__cause__)

    def test_duplicate_accounts_raise_error(self, builder):
        accounts = pd.concat([self.ACCOUNTS, self.ACCOUNTS.head(1)], ignore_index=True)
        with pytest.raises(LedgerError, match="Duplicate account identifiers: Cash"):
            self.build(builder, JOURNAL_CSV, accounts=accounts)

    def test_accounts_without_identifier_are_discarded(self, builder, caplog):
        accounts = pd.concat(
            [self.ACCOUNTS, pd.DataFrame([{"account": " ", "name": "Blank", "type": "A"}])],
            ignore_index=True,
        )
        chart = builder.chart(accounts)
        assert set(chart) == set(self.ACCOUNTS["account"])
        assert "Discarding 1 accounts without identifier: Blank" in caplog.text

    def test_invariants(self, builder):
        gl = self.build(builder, JOURNAL_CSV)

        # Lines come in pairs with additive inverse amounts
        first, second = gl.iloc[0::2].reset_index(drop=True), gl.iloc[1::2].reset_index(drop=True)
        assert (first["amount"].fillna(0) == -second["amount"].fillna(0)).all()
        assert (first["base_amount"] == -second["base_amount"]).all()
        assert (first["account"] == second["contra"]).all()
        assert (first["date"] == second["date"]).all()

        # Chronological order
        assert gl["date"].is_monotonic_increasing

        # Balanced in base currency overall
        assert gl["base_amount"].sum() == pytest.approx(0.0)

    def test_running_balances_match_ledger(self, builder, chart, converter):
        entries = builder.journal_entries(read_journal(JOURNAL_CSV))
        run = LedgerRun(chart, converter)
        run.process(entries, datetime.date(2024, 1, 5), datetime.date(2024, 3, 1))
        tracked = run.balances.to_frame().set_index(["account", "commodity"])
        summed = account_balances(run.to_frame()).set_index(["account", "commodity"])
        summed = summed.reindex(tracked.index).fillna(0.0)
        assert tracked["amount"].tolist() == pytest.approx(summed["amount"].tolist())
        assert tracked["base_amount"].tolist() == pytest.approx(summed["base_amount"].tolist())

    def test_build_is_deterministic(self, builder):
        first = self.build(builder, JOURNAL_CSV)
        second = self.build(builder, JOURNAL_CSV)
        assert_frame_equal(first, second)

    def test_build_general_ledger(self):
        journal = read_journal("""
                  date, account, contra, commodity, amount
            2024-01-05,   Sales,   Cash,       USD, -100.00
        """)
        gl = build_general_ledger(
            self.ACCOUNTS, journal, self.CURRENCIES, self.PRICES,
            configuration=self.CONFIGURATION, today=self.TODAY,
        )
        assert gl["account"].tolist() == ["Sales", "Cash"]

    def test_base_currency_configuration(self):
        builder = GeneralLedgerBuilder({"base_currency": "EUR"}, today=self.TODAY)
        currencies = pd.DataFrame({
            "currency": ["USD"], "date": ["2024-01-01"], "rate": [0.90],
        })
        journal = read_journal("""
                  date, account, contra, commodity,  amount
            2024-01-10, BankEUR, Equity,       EUR,  500.00
            2024-01-10,    Cash, Equity,       USD,  100.00
        """)
        gl = builder.build(self.ACCOUNTS, journal, currencies, self.PRICES)
        assert gl["base_amount"].tolist() == [500.0, -500.0, 90.0, -90.0]


class TestConfiguration:

    def test_default_configuration(self):
        builder = GeneralLedgerBuilder()
        assert builder.base_currency == "USD"
        assert builder.configuration == {"base_currency": "USD", "precision": {}}

    def test_today_defaults_to_current_date(self):
        assert GeneralLedgerBuilder().today == datetime.date.today()
        assert GeneralLedgerBuilder(today=datetime.date(2020, 1, 1)).today == datetime.date(
            2020, 1, 1
        )

    @pytest.mark.parametrize("configuration, message", [
        ("USD", "'configuration' must be a dict."),
        ({}, "Missing/invalid 'base_currency'"),
        ({"base_currency": 1}, "Missing/invalid 'base_currency'"),
        ({"base_currency": "USD", "precision": {"JPY": 0}}, "'precision' must map"),
        ({"base_currency": "USD", "precision": []}, "'precision' must map"),
    ])
    def test_invalid_configuration_raises_error(self, configuration, message):
        with pytest.raises(ValueError, match=message):
            GeneralLedgerBuilder.standardize_configuration(configuration)
