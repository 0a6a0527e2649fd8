"""
Auction actions, i.e., the redeemer that a transaction presents when it spends the escrow output.

Wire format - the constructor index identifies the action::

    AuctionAction := Constr 0 [AuctionDetails]   -- Auction
                   | Constr 1 [BidDetails]       -- Bid
                   | Constr 2 [CloseDetails]     -- Close

The `Auction` action is part of the wire format, but the validator never accepts it.
"""

import json
from dataclasses import dataclass
from typing import Any, ClassVar, TypeAlias

from escrow_auction.auction.domain.auction import (
    AuctionDetails,
    BidDetails,
    CloseDetails,
)
from escrow_auction.auction.errors import DecodeError
from escrow_auction.ledger import data
from escrow_auction.ledger.data import Constr, Data, DataDecodeError


@dataclass(slots=True, frozen=True)
class Auction:
    """
    Vestigial action that carries the auction details
    """

    CONSTRUCTOR: ClassVar[int] = 0

    auction_details: AuctionDetails

    def to_data(self) -> Constr:
        """
        Converts to its wire format
        """
        return Constr(self.CONSTRUCTOR, (self.auction_details.to_data(),))


@dataclass(slots=True, frozen=True)
class Bid:
    """
    Place a new highest bid
    """

    CONSTRUCTOR: ClassVar[int] = 1

    bid: BidDetails

    def to_data(self) -> Constr:
        """
        Converts to its wire format
        """
        return Constr(self.CONSTRUCTOR, (self.bid.to_data(),))


@dataclass(slots=True, frozen=True)
class Close:
    """
    Close the auction and pay out
    """

    CONSTRUCTOR: ClassVar[int] = 2

    close: CloseDetails

    def to_data(self) -> Constr:
        """
        Converts to its wire format
        """
        return Constr(self.CONSTRUCTOR, (self.close.to_data(),))


AuctionAction: TypeAlias = Auction | Bid | Close


def from_data(data_: Data) -> AuctionAction:
    """
    :exception DecodeError: if the data does not encode an AuctionAction
    """
    match data_:
        case Constr(Auction.CONSTRUCTOR, (auction_details,)):
            return Auction(AuctionDetails.from_data(auction_details))
        case Constr(Bid.CONSTRUCTOR, (bid,)):
            return Bid(BidDetails.from_data(bid))
        case Constr(Close.CONSTRUCTOR, (close,)):
            return Close(CloseDetails.from_data(close))
        case _:
            raise DecodeError("AuctionAction", f"unknown action: {data_!r}")


def pack(action: AuctionAction) -> bytes:
    """
    Serialize the action
    """
    return data.pack(action.to_data())


def unpack(packed: bytes) -> AuctionAction:
    """
    Deserialize the action

    :exception DecodeError: if the bytes do not encode an AuctionAction
    """
    try:
        return from_data(data.unpack(packed))
    except DataDecodeError as err:
        raise DecodeError("AuctionAction", str(err)) from err


def to_json(action: AuctionAction) -> str:
    """
    :return: JSON detailed schema representation
    """
    return json.dumps(data.to_json(action.to_data()))


def from_json(json_data: str | dict[str, Any]) -> AuctionAction:
    """
    :param json_data: JSON detailed schema representation, either as text or already parsed
    :exception DecodeError: if the JSON does not encode an AuctionAction
    """
    try:
        if isinstance(json_data, str):
            json_data = json.loads(json_data)
        return from_data(data.from_json(json_data))
    except (DataDecodeError, json.JSONDecodeError) as err:
        raise DecodeError("AuctionAction", str(err)) from err
