"""
Ledger emulator with the auction validator installed
"""
import logging

from escrow_auction.auction.contracts.auction import AUCTION_ADDRESS, AuctionValidator
from escrow_auction.auction.domain.auction import AuctionDatum, AuctionDetails
from escrow_auction.core.config import ValidatorConfig
from escrow_auction.ledger.emulator import Emulator
from escrow_auction.ledger.model import POSIXTime, TxOutRef

logger = logging.getLogger(__name__)


def create_emulator(
    config: ValidatorConfig | None = None,
    current_time: POSIXTime = POSIXTime(0),
) -> Emulator:
    """
    :return: Emulator that guards the auction script address with the auction validator
    """
    validator = AuctionValidator(config)
    return Emulator(
        scripts={AUCTION_ADDRESS: validator.run_script},
        current_time=current_time,
    )


def start_auction(emulator: Emulator, auction_details: AuctionDetails) -> TxOutRef:
    """
    Starts an auction by escrowing the asset and the starting bid at the auction script address.

    The initial state records the seller as the highest bidder with the starting bid.

    :return: reference to the escrow output
    """
    datum = AuctionDatum.start(auction_details)
    out_ref = emulator.fund(AUCTION_ADDRESS, datum.escrow_value, datum.to_data())
    logger.info(
        "Started auction for %s.%s at %s",
        auction_details.currency,
        auction_details.token,
        out_ref,
    )
    return out_ref
