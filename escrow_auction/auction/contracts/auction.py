"""
Auction escrow validator

The auctioned asset is escrowed in a single output at the auction script address together with
the current highest bid. The validator decides whether a transaction that spends the escrow output
is an admissible state transition:

- Bid - replaces the escrow output with one that records a higher bid and refunds the previous
  highest bidder
- Close - pays the asset to the highest bidder and the highest bid to the seller

Checks are evaluated in order and the first failing check is reported. The validator is pure:
it performs no I/O and reads no clock - time is only ever taken from the transaction validity range.
"""

from dataclasses import dataclass
from typing import Final

from escrow_auction.auction.domain.action import (
    Auction,
    AuctionAction,
    Bid,
    Close,
    from_data as action_from_data,
)
from escrow_auction.auction.domain.auction import (
    AuctionDatum,
    BidDetails,
    CloseDetails,
)
from escrow_auction.auction.errors import (
    AssetPayoutMissing,
    AuctionError,
    AuctionNotEnded,
    BidTooEarly,
    BidTooLate,
    BidTooLow,
    DatumNotFound,
    DecodeError,
    ExpectedExactlyOneContinuingOutput,
    ExpectedExactlyOneRefundOutput,
    NotSeller,
    SettlementPayoutMissing,
    UnsupportedAction,
    WrongOutputDatum,
    WrongOutputValue,
    WrongRefundAmount,
)
from escrow_auction.core.config import ValidatorConfig
from escrow_auction.core.logging import get_logger
from escrow_auction.ledger.context import TransactionContext
from escrow_auction.ledger.data import Data
from escrow_auction.ledger.model import (
    Address,
    Interval,
    POSIXTime,
    TxOut,
    Value,
    script_address,
)

APP_NAME: Final[str] = "escrow_auction.auction"

# validator program identifier - the escrow address is derived from it
PROGRAM: Final[bytes] = b"escrow_auction.auction.v1"

AUCTION_ADDRESS: Final[Address] = script_address(PROGRAM)


def increase_percent(amount: int, percent: int) -> int:
    """
    :return: amount increased by percent, rounded down
    """
    return (amount * (100 + percent)) // 100


def min_acceptable_bid(datum: AuctionDatum) -> int:
    """
    A new bid must be strictly greater than the returned amount.

    :return: current highest bid increased by the auction's bid percent increase, rounded down
    """
    return increase_percent(
        datum.highest_bid.bid,
        datum.auction_details.bid_percent_increase,
    )


def deadline(datum: AuctionDatum) -> POSIXTime:
    """
    Every bid extends the deadline relative to its own bid time.

    :return: highest bid time + bid time increment
    """
    return POSIXTime(
        datum.highest_bid.time + datum.auction_details.bid_time_increment
    )


@dataclass(slots=True, frozen=True)
class ValidationResult:
    """
    Outcome of validating a state transition

    :field:`rejection` - the first check that failed. None means the transition was accepted.
    """

    rejection: AuctionError | None = None

    @property
    def accepted(self) -> bool:
        """
        :return: True if the transition is admissible
        """
        return self.rejection is None

    def __bool__(self) -> bool:
        return self.accepted

    def __str__(self) -> str:
        return "accepted" if self.rejection is None else f"rejected: {self.rejection}"


class AuctionValidator:
    """
    Validates transactions that spend the auction escrow output
    """

    def __init__(self, config: ValidatorConfig | None = None):
        self.config = config if config is not None else ValidatorConfig()
        self._logger = get_logger(self)

    def __call__(
        self,
        datum: AuctionDatum,
        action: AuctionAction,
        context: TransactionContext,
    ) -> ValidationResult:
        return self.validate(datum, action, context)

    def validate(
        self,
        datum: AuctionDatum,
        action: AuctionAction,
        context: TransactionContext,
    ) -> ValidationResult:
        """
        :param datum: datum attached to the escrow output being spent
        :param action: the redeemer presented by the transaction
        :param context: the transaction
        :return: ValidationResult - if rejected, it reports the first check that failed
        """
        try:
            self.check(datum, action, context)
        except AuctionError as err:
            self._logger.debug(
                "rejected %s for %s: %s",
                type(action).__name__,
                context.spent.out_ref,
                err,
            )
            return ValidationResult(rejection=err)

        self._logger.debug(
            "accepted %s for %s", type(action).__name__, context.spent.out_ref
        )
        return ValidationResult()

    def run_script(
        self,
        datum: Data,
        redeemer: Data,
        context: TransactionContext,
    ) -> ValidationResult:
        """
        Entry point used by the ledger: decodes the datum and redeemer and then validates.
        Data that does not decode is rejected with a DecodeError.
        """
        try:
            auction_datum = AuctionDatum.from_data(datum)
            action = action_from_data(redeemer)
        except DecodeError as err:
            self._logger.debug("rejected %s: %s", context.spent.out_ref, err)
            return ValidationResult(rejection=err)
        return self.validate(auction_datum, action, context)

    def check(
        self,
        datum: AuctionDatum,
        action: AuctionAction,
        context: TransactionContext,
    ):
        """
        Raises on the first check that fails.

        :exception AuctionValidationError: if the transition is not admissible
        :exception DatumError: if the continuing output datum cannot be resolved
        """
        match action:
            case Bid(bid):
                self._check_bid(datum, bid, context)
            case Close(close):
                self._check_close(datum, close, context)
            case Auction():
                raise UnsupportedAction(type(action).__name__)
            case _:
                raise UnsupportedAction(repr(action))

    def _check_bid(
        self,
        datum: AuctionDatum,
        bid: BidDetails,
        context: TransactionContext,
    ):
        details = datum.auction_details
        previous_bid = datum.highest_bid

        # continuing output
        own_output, output_datum = continuing_output(context)

        if output_datum.auction_details != details:
            raise WrongOutputDatum("auction details must not change")
        # compares bidder, amount and bid time - the bid time drives the next deadline
        if output_datum.highest_bid != bid:
            raise WrongOutputDatum(
                f"highest bid must be the new bid: expected {bid}, but was {output_datum.highest_bid}"
            )

        expected_value = details.asset_value + Value.settlement(bid.bid)
        if own_output.value != expected_value:
            raise WrongOutputValue(expected=expected_value, actual=own_output.value)

        if self.config.enforce_time_window:
            if not Interval.from_(details.start_time).contains(context.valid_range):
                raise BidTooEarly(details.start_time, context.valid_range)
            if not Interval.to(deadline(datum)).contains(context.valid_range):
                raise BidTooLate(deadline(datum), context.valid_range)

        if bid.bid <= min_acceptable_bid(datum):
            raise BidTooLow(bid=bid.bid, min_acceptable_bid=min_acceptable_bid(datum))

        # refund to the previous highest bidder
        refunds = context.outputs_at(previous_bid.bidder)
        if len(refunds) != 1:
            raise ExpectedExactlyOneRefundOutput(previous_bid.bidder, len(refunds))
        expected_refund = Value.settlement(previous_bid.bid)
        if refunds[0].value != expected_refund:
            raise WrongRefundAmount(expected=expected_refund, actual=refunds[0].value)

    def _check_close(
        self,
        datum: AuctionDatum,
        close: CloseDetails,
        context: TransactionContext,
    ):
        details = datum.auction_details
        highest_bid = datum.highest_bid

        if close.closer != details.seller:
            raise NotSeller(closer=close.closer, seller=details.seller)

        if self.config.enforce_time_window:
            if not Interval.from_(deadline(datum)).contains(context.valid_range):
                raise AuctionNotEnded(deadline(datum), context.valid_range)

        if not gets_value(context, highest_bid.bidder, details.asset_value):
            raise AssetPayoutMissing(highest_bid.bidder, details.asset_value)

        settlement = Value.settlement(highest_bid.bid)
        if not gets_value(context, details.seller, settlement):
            raise SettlementPayoutMissing(details.seller, settlement)


def continuing_output(context: TransactionContext) -> tuple[TxOut, AuctionDatum]:
    """
    Resolves the single output paid back to the escrow address together with its datum.

    :exception ExpectedExactlyOneContinuingOutput: unless exactly one output is paid to the escrow address
    :exception DatumNotFound: if the output has no datum hash, or the datum is not witnessed
    :exception DecodeError: if the datum is not an AuctionDatum
    """
    outputs = context.continuing_outputs()
    if len(outputs) != 1:
        raise ExpectedExactlyOneContinuingOutput(len(outputs))

    (output,) = outputs
    if output.datum_hash is None:
        raise DatumNotFound(None)
    datum_data = context.find_datum(output.datum_hash)
    if datum_data is None:
        raise DatumNotFound(output.datum_hash)
    return output, AuctionDatum.from_data(datum_data)


def gets_value(context: TransactionContext, address: Address, value: Value) -> bool:
    """
    :return: True if some transaction output pays exactly `value` to `address`
    """
    return any(output.value == value for output in context.outputs_at(address))


def validate(
    datum: AuctionDatum,
    action: AuctionAction,
    context: TransactionContext,
    config: ValidatorConfig | None = None,
) -> ValidationResult:
    """
    Validates a transaction that spends the auction escrow output.

    :param config: if None, the default config is used, i.e., time windows are not enforced
    """
    return AuctionValidator(config).validate(datum, action, context)
