"""
Ledger related errors
"""
from dataclasses import dataclass

from escrow_auction.ledger.model import DatumHash, Interval, POSIXTime, TxOutRef


class LedgerError(Exception):
    """
    Base class for transactions refused by the ledger
    """


@dataclass
class InputAlreadySpent(LedgerError):
    """
    The input does not reference an unspent output.

    An output can be spent by at most one transaction. When transactions race to spend the same
    output, the first one accepted wins and the others fail with this error.
    """

    out_ref: TxOutRef

    def __str__(self) -> str:
        return f"Input is not an unspent output: {self.out_ref}"


@dataclass
class NoInputs(LedgerError):
    """
    Transactions must spend at least one output
    """

    def __str__(self) -> str:
        return "Transaction has no inputs"


@dataclass
class OutsideValidityRange(LedgerError):
    """
    The current ledger time is outside the transaction validity range
    """

    current_time: POSIXTime
    valid_range: Interval

    def __str__(self) -> str:
        return f"Current time {self.current_time} is outside the validity range {self.valid_range}"


@dataclass
class MissingDatumWitness(LedgerError):
    """
    The transaction spends a script output, but does not include the datum attached to it
    """

    out_ref: TxOutRef
    datum_hash: DatumHash | None

    def __str__(self) -> str:
        return f"Missing datum witness for script input {self.out_ref}: {self.datum_hash}"


@dataclass
class MissingRedeemer(LedgerError):
    """
    The transaction spends a script output without a redeemer
    """

    out_ref: TxOutRef

    def __str__(self) -> str:
        return f"Missing redeemer for script input {self.out_ref}"


@dataclass
class TransactionRejected(LedgerError):
    """
    A validator script rejected the transaction
    """

    out_ref: TxOutRef
    rejection: Exception

    def __str__(self) -> str:
        return f"Script input {self.out_ref} rejected: {self.rejection}"
