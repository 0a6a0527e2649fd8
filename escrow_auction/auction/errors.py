"""
Auction errors

Every rejection is an explicit, typed error that carries the context of the check that failed.
The error message is meant to be surfaced verbatim to whoever is building candidate transactions.
"""
from dataclasses import dataclass

from escrow_auction.ledger.model import (
    Address,
    CurrencySymbol,
    DatumHash,
    Interval,
    POSIXTime,
    TokenName,
    TxOutRef,
    Value,
)


class AuctionError(Exception):
    """
    Base class for auction errors
    """


@dataclass
class InvalidFieldValue(AuctionError):
    """
    Raised when an auction record is constructed with a malformed field value,
    e.g., a seller that is not an address
    """

    record: str
    field_name: str
    value: object

    def __str__(self) -> str:
        return f"Invalid {self.record}.{self.field_name}: {self.value!r}"


class DatumError(AuctionError):
    """
    Base class for errors resolving or decoding an attached datum
    """


@dataclass
class DatumNotFound(DatumError):
    """
    The output has no datum hash attached, or the datum hash is not witnessed
    """

    datum_hash: DatumHash | None

    def __str__(self) -> str:
        if self.datum_hash is None:
            return "Datum not found: output has no datum hash"
        return f"Datum not found: {self.datum_hash}"


@dataclass
class DecodeError(DatumError):
    """
    Data could not be decoded into the expected type
    """

    expected_type: str
    reason: str

    def __str__(self) -> str:
        return f"Error decoding {self.expected_type}: {self.reason}"


class AuctionValidationError(AuctionError):
    """
    Base class for state transition rejections
    """


@dataclass
class ExpectedExactlyOneContinuingOutput(AuctionValidationError):
    """
    A bid must create exactly one new output at the escrow address
    """

    count: int

    def __str__(self) -> str:
        return f"Expected exactly one continuing output, but found {self.count}"


@dataclass
class WrongOutputDatum(AuctionValidationError):
    """
    The continuing output datum must keep the auction details and record the new bid
    """

    reason: str

    def __str__(self) -> str:
        return f"Wrong output datum: {self.reason}"


@dataclass
class WrongOutputValue(AuctionValidationError):
    """
    The continuing output must hold the auctioned asset plus the new bid amount
    """

    expected: Value
    actual: Value

    def __str__(self) -> str:
        return f"Wrong output value: expected [{self.expected}], but was [{self.actual}]"


@dataclass
class BidTooLow(AuctionValidationError):
    """
    The bid must be strictly greater than the minimum acceptable bid
    """

    bid: int
    min_acceptable_bid: int

    def __str__(self) -> str:
        return (
            f"Bid is too low: {self.bid} must be greater than {self.min_acceptable_bid}"
        )


@dataclass
class ExpectedExactlyOneRefundOutput(AuctionValidationError):
    """
    Exactly one output must be paid to the previous highest bidder
    """

    bidder: Address
    count: int

    def __str__(self) -> str:
        return f"Expected exactly one refund output to {self.bidder}, but found {self.count}"


@dataclass
class WrongRefundAmount(AuctionValidationError):
    """
    The previous highest bidder must be refunded exactly their bid
    """

    expected: Value
    actual: Value

    def __str__(self) -> str:
        return f"Wrong refund amount: expected [{self.expected}], but was [{self.actual}]"


@dataclass
class BidTooEarly(AuctionValidationError):
    """
    Bid was made before the auction started
    """

    start_time: POSIXTime
    valid_range: Interval

    def __str__(self) -> str:
        return f"Bid is too early, the auction starts at {self.start_time}"


@dataclass
class BidTooLate(AuctionValidationError):
    """
    Bid was made after the auction deadline
    """

    deadline: POSIXTime
    valid_range: Interval

    def __str__(self) -> str:
        return f"Bid is too late, the auction ended at {self.deadline}"


@dataclass
class NotSeller(AuctionValidationError):
    """
    Only the seller may close the auction
    """

    closer: Address
    seller: Address

    def __str__(self) -> str:
        return f"Seller must close the auction: {self.closer} is not the seller"


@dataclass
class AuctionNotEnded(AuctionValidationError):
    """
    The auction cannot be closed before its deadline
    """

    deadline: POSIXTime
    valid_range: Interval

    def __str__(self) -> str:
        return f"The auction has not ended yet, the deadline is {self.deadline}"


@dataclass
class AssetPayoutMissing(AuctionValidationError):
    """
    Closing must pay the auctioned asset to the highest bidder
    """

    bidder: Address
    expected: Value

    def __str__(self) -> str:
        return f"Expected the highest bidder {self.bidder} to get [{self.expected}]"


@dataclass
class SettlementPayoutMissing(AuctionValidationError):
    """
    Closing must pay the highest bid to the seller
    """

    seller: Address
    expected: Value

    def __str__(self) -> str:
        return f"Expected the seller {self.seller} to get [{self.expected}]"


@dataclass
class UnsupportedAction(AuctionValidationError):
    """
    The action is part of the wire format, but is never a valid state transition
    """

    action: str

    def __str__(self) -> str:
        return f"Unsupported auction action: {self.action}"


class AuctionLookupError(AuctionError):
    """
    Base class for errors looking up the live auction
    """


@dataclass
class AuctionNotFound(AuctionLookupError):
    """
    No output holds the auctioned asset
    """

    currency: CurrencySymbol
    token: TokenName

    def __str__(self) -> str:
        return f"Auction utxo not found: {self.currency}.{self.token}"


@dataclass
class AmbiguousLiveAuction(AuctionLookupError):
    """
    More than one output holds the auctioned asset.
    This is a protocol invariant violation.
    """

    currency: CurrencySymbol
    token: TokenName
    out_refs: list[TxOutRef]

    def __str__(self) -> str:
        refs = ", ".join(str(out_ref) for out_ref in self.out_refs)
        return f"Found {len(self.out_refs)} live auctions for {self.currency}.{self.token}: {refs}"


@dataclass
class AuctionTokenMismatch(AuctionLookupError):
    """
    The datum attached to the auction output describes a different asset
    """

    expected: tuple[CurrencySymbol, TokenName]
    actual: tuple[CurrencySymbol, TokenName]

    def __str__(self) -> str:
        return f"Auction token mismatch: expected {self.expected}, but datum has {self.actual}"
