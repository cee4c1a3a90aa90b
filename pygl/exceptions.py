"""Exception raised when the general ledger cannot be built."""

import datetime


class LedgerError(ValueError):
    """Validation or processing failure while building the general ledger.

    The error carries the context in which it occurred, so that callers can
    identify the offending input without parsing the message. The original
    cause, if any, is chained via ``raise ... from``.

    Attributes:
        entry (dict | None): The journal entry being processed.
        account (str | None): Account identifier, e.g. for revaluation failures.
        commodity (str | None): Commodity of the affected balance.
        date (datetime.date | None): Date on which the failure occurred.
    """

    def __init__(
        self,
        message: str,
        entry: dict | None = None,
        account: str | None = None,
        commodity: str | None = None,
        date: datetime.date | None = None,
    ):
        super().__init__(message)
        self.entry = entry
        self.account = account
        self.commodity = commodity
        self.date = date
