"""Constants used throughout the application."""

import pandas as pd
from io import StringIO

ACCOUNT_SCHEMA_CSV = """
    column,               dtype,                mandatory,       id
    account,              string[python],       True,          True
    name,                 string[python],       False,        False
    name1,                string[python],       False,        False
    name2,                string[python],       False,        False
    name3,                string[python],       False,        False
    name4,                string[python],       False,        False
    type,                 string[python],       True,         False
    tag,                  string[python],       False,        False
    commodity,            string[python],       False,        False
    settlement_account,   string[python],       False,        False
    revaluation_account,  string[python],       False,        False
"""
ACCOUNT_SCHEMA = pd.read_csv(StringIO(ACCOUNT_SCHEMA_CSV), skipinitialspace=True)

JOURNAL_SCHEMA_CSV = """
    column,              dtype,                mandatory,       id
    date,                datetime64[ns],       True,         False
    reconciled,          string[python],       False,        False
    reference,           string[python],       False,        False
    description,         string[python],       False,        False
    account,             string[python],       True,         False
    contra,              string[python],       True,         False
    commodity,           string[python],       True,         False
    amount,              Float64,              False,        False
    target_balance,      Float64,              False,        False
    tag,                 string[python],       False,        False
    document,            string[python],       False,        False
"""
JOURNAL_SCHEMA = pd.read_csv(StringIO(JOURNAL_SCHEMA_CSV), skipinitialspace=True)

CURRENCY_SCHEMA_CSV = """
    column,             dtype,                mandatory,       id
    currency,           string[python],       True,          True
    date,               datetime64[ns],       True,          True
    rate,               Float64,              True,         False
"""
CURRENCY_SCHEMA = pd.read_csv(StringIO(CURRENCY_SCHEMA_CSV), skipinitialspace=True)

PRICE_SCHEMA_CSV = """
    column,             dtype,                mandatory,       id
    ticker,             string[python],       True,          True
    date,               datetime64[ns],       True,          True
    currency,           string[python],       True,          True
    price,              Float64,              True,         False
"""
PRICE_SCHEMA = pd.read_csv(StringIO(PRICE_SCHEMA_CSV), skipinitialspace=True)

GL_SCHEMA_CSV = """
    column,              dtype,                mandatory,       id
    date,                datetime64[ns],       True,         False
    reconciled,          string[python],       False,        False
    reference,           string[python],       False,        False
    description,         string[python],       False,        False
    amount,              Float64,              False,        False
    commodity,           string[python],       True,         False
    base_amount,         Float64,              True,         False
    account,             string[python],       True,         False
    account_name,        string[python],       False,        False
    account_name1,       string[python],       False,        False
    account_name2,       string[python],       False,        False
    account_name3,       string[python],       False,        False
    account_name4,       string[python],       False,        False
    account_type,        string[python],       False,        False
    contra,              string[python],       True,         False
    contra_name,         string[python],       False,        False
    tag,                 string[python],       False,        False
    document,            string[python],       False,        False
"""
GL_SCHEMA = pd.read_csv(StringIO(GL_SCHEMA_CSV), skipinitialspace=True)

ACCOUNT_BALANCE_SCHEMA_CSV = """
    column,             dtype,                mandatory,       id
    account,            string[python],       True,          True
    commodity,          string[python],       True,          True
    amount,             Float64,              True,         False
    base_amount,        Float64,              True,         False
"""
ACCOUNT_BALANCE_SCHEMA = pd.read_csv(
    StringIO(ACCOUNT_BALANCE_SCHEMA_CSV), skipinitialspace=True
)

ASSET_ACCOUNT = "A"
LIABILITY_ACCOUNT = "L"
EQUITY_ACCOUNT = "E"
ACCOUNT_TYPES = {
    ASSET_ACCOUNT: "Assets",
    LIABILITY_ACCOUNT: "Liabilities",
    EQUITY_ACCOUNT: "Equity",
}

REVALUATION_MARKER = "r"

DEFAULT_PRECISION = 0.01

DEFAULT_CONFIGURATION = {"base_currency": "USD"}
