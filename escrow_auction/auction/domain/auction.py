"""
Auction domain model

The auction state is a chain of immutable snapshots. Each accepted bid consumes the escrow
output carrying the current :class:`AuctionDatum` and creates a new escrow output carrying
its successor. Only the highest bid changes between snapshots - the auction details are fixed
when the auction is started.

Wire format - every record is encoded as constructor 0 with its fields in declaration order::

    AuctionDatum   := Constr 0 [AuctionDetails, BidDetails]
    AuctionDetails := Constr 0 [seller, currency, token, bid, bid_percent_increase, start_time, bid_time_increment]
    BidDetails     := Constr 0 [bidder, bid, time]
    CloseDetails   := Constr 0 [closer]

Addresses are encoded as their 32 byte public key, the currency symbol as its raw bytes and
the token name as UTF-8 bytes.
"""

import json
from dataclasses import dataclass
from typing import Any, Self

import algosdk.encoding

from escrow_auction.auction.errors import DecodeError, InvalidFieldValue
from escrow_auction.ledger import data
from escrow_auction.ledger.data import Constr, Data, DataDecodeError
from escrow_auction.ledger.model import (
    Address,
    CurrencySymbol,
    DatumHash,
    MicroAlgos,
    POSIXTime,
    TokenName,
    Value,
    is_valid_address,
    is_valid_currency_symbol,
    normalize_currency_symbol,
)


def check_address(record: str, field_name: str, address: Address):
    """
    :exception InvalidFieldValue: if the address is not a well formed address
    """
    if not is_valid_address(address):
        raise InvalidFieldValue(record, field_name, address)


def encode_address(address: Address) -> bytes:
    """
    :return: 32 byte public key
    """
    return algosdk.encoding.decode_address(address)


def decode_address(data_: Data, expected_type: str) -> Address:
    """
    :exception DecodeError: if the data is not a 32 byte public key
    """
    if not isinstance(data_, bytes) or len(data_) != 32:
        raise DecodeError(expected_type, f"invalid address: {data_!r}")
    return Address(algosdk.encoding.encode_address(data_))


def decode_int(data_: Data, expected_type: str) -> int:
    """
    :exception DecodeError: if the data is not an integer
    """
    if not isinstance(data_, int) or isinstance(data_, bool):
        raise DecodeError(expected_type, f"expected an integer: {data_!r}")
    return data_


def decode_fields(data_: Data, expected_type: str, count: int) -> tuple[Data, ...]:
    """
    :return: fields of a constructor 0 record with the expected number of fields
    :exception DecodeError: if the data is not a record with the expected shape
    """
    match data_:
        case Constr(0, fields) if len(fields) == count:
            return fields
        case _:
            raise DecodeError(
                expected_type, f"expected Constr 0 with {count} fields: {data_!r}"
            )


@dataclass(slots=True, frozen=True)
class AuctionDetails:
    """
    Auction parameters - fixed when the auction is started

    :field:`seller` - seller address
    :field:`currency` - auctioned asset currency symbol
    :field:`token` - auctioned asset token name. Exactly 1 unit of the asset is auctioned.
    :field:`bid` - starting bid, in microalgos
    :field:`bid_percent_increase` - a new bid must be more than this percentage above the current bid
    :field:`start_time` - auction start time
    :field:`bid_time_increment` - how long bidding remains open after each bid
    """

    # pylint: disable=too-many-instance-attributes

    seller: Address
    currency: CurrencySymbol
    token: TokenName
    bid: MicroAlgos
    bid_percent_increase: int
    start_time: POSIXTime
    bid_time_increment: POSIXTime

    def __post_init__(self):
        """
        :exception InvalidFieldValue: if the seller is not an address or the currency is not hex
        """
        check_address(type(self).__name__, "seller", self.seller)
        if not is_valid_currency_symbol(self.currency):
            raise InvalidFieldValue(type(self).__name__, "currency", self.currency)
        # frozen dataclass
        object.__setattr__(self, "currency", normalize_currency_symbol(self.currency))

    @property
    def asset_value(self) -> Value:
        """
        :return: the auctioned asset
        """
        return Value.singleton(self.currency, self.token, 1)

    def to_data(self) -> Constr:
        """
        Converts to its wire format
        """
        return Constr(
            0,
            (
                encode_address(self.seller),
                bytes.fromhex(self.currency),
                self.token.encode(),
                self.bid,
                self.bid_percent_increase,
                self.start_time,
                self.bid_time_increment,
            ),
        )

    @classmethod
    def from_data(cls, data_: Data) -> Self:
        """
        :exception DecodeError: if the data does not encode AuctionDetails
        """
        (
            seller,
            currency,
            token,
            bid,
            bid_percent_increase,
            start_time,
            bid_time_increment,
        ) = decode_fields(data_, cls.__name__, 7)

        if not isinstance(currency, bytes):
            raise DecodeError(cls.__name__, f"invalid currency symbol: {currency!r}")
        if not isinstance(token, bytes):
            raise DecodeError(cls.__name__, f"invalid token name: {token!r}")
        try:
            token_name = token.decode()
        except UnicodeDecodeError as err:
            raise DecodeError(cls.__name__, f"invalid token name: {token!r}") from err

        return cls(
            seller=decode_address(seller, cls.__name__),
            currency=CurrencySymbol(currency.hex()),
            token=TokenName(token_name),
            bid=MicroAlgos(decode_int(bid, cls.__name__)),
            bid_percent_increase=decode_int(bid_percent_increase, cls.__name__),
            start_time=POSIXTime(decode_int(start_time, cls.__name__)),
            bid_time_increment=POSIXTime(decode_int(bid_time_increment, cls.__name__)),
        )


@dataclass(slots=True, frozen=True)
class BidDetails:
    """
    A bid

    :field:`bidder` - bidder address
    :field:`bid` - bid amount, in microalgos
    :field:`time` - when the bid was made
    """

    bidder: Address
    bid: MicroAlgos
    time: POSIXTime

    def __post_init__(self):
        check_address(type(self).__name__, "bidder", self.bidder)

    def to_data(self) -> Constr:
        """
        Converts to its wire format
        """
        return Constr(0, (encode_address(self.bidder), self.bid, self.time))

    @classmethod
    def from_data(cls, data_: Data) -> Self:
        """
        :exception DecodeError: if the data does not encode BidDetails
        """
        bidder, bid, time = decode_fields(data_, cls.__name__, 3)
        return cls(
            bidder=decode_address(bidder, cls.__name__),
            bid=MicroAlgos(decode_int(bid, cls.__name__)),
            time=POSIXTime(decode_int(time, cls.__name__)),
        )


@dataclass(slots=True, frozen=True)
class CloseDetails:
    """
    Identifies who is closing the auction
    """

    closer: Address

    def __post_init__(self):
        check_address(type(self).__name__, "closer", self.closer)

    def to_data(self) -> Constr:
        """
        Converts to its wire format
        """
        return Constr(0, (encode_address(self.closer),))

    @classmethod
    def from_data(cls, data_: Data) -> Self:
        """
        :exception DecodeError: if the data does not encode CloseDetails
        """
        (closer,) = decode_fields(data_, cls.__name__, 1)
        return cls(closer=decode_address(closer, cls.__name__))


@dataclass(slots=True, frozen=True)
class AuctionDatum:
    """
    Auction state attached to the escrow output
    """

    auction_details: AuctionDetails
    highest_bid: BidDetails

    @classmethod
    def start(cls, auction_details: AuctionDetails) -> Self:
        """
        Initial auction state.

        The seller is recorded as the highest bidder with the starting bid at the auction start time.
        """
        return cls(
            auction_details=auction_details,
            highest_bid=BidDetails(
                bidder=auction_details.seller,
                bid=auction_details.bid,
                time=auction_details.start_time,
            ),
        )

    @property
    def escrow_value(self) -> Value:
        """
        :return: value that the escrow output must hold: the auctioned asset plus the highest bid
        """
        return self.auction_details.asset_value + Value.settlement(self.highest_bid.bid)

    def with_bid(self, bid: BidDetails) -> Self:
        """
        :return: successor state with the specified bid as the highest bid
        """
        return type(self)(auction_details=self.auction_details, highest_bid=bid)

    def hash(self) -> DatumHash:
        """
        :return: datum hash used to attach the datum to an output
        """
        return data.data_hash(self.to_data())

    def to_data(self) -> Constr:
        """
        Converts to its wire format
        """
        return Constr(0, (self.auction_details.to_data(), self.highest_bid.to_data()))

    @classmethod
    def from_data(cls, data_: Data) -> Self:
        """
        :exception DecodeError: if the data does not encode an AuctionDatum
        """
        auction_details, highest_bid = decode_fields(data_, cls.__name__, 2)
        return cls(
            auction_details=AuctionDetails.from_data(auction_details),
            highest_bid=BidDetails.from_data(highest_bid),
        )

    def pack(self) -> bytes:
        """
        Serialize the datum
        """
        return data.pack(self.to_data())

    @classmethod
    def unpack(cls, packed: bytes) -> Self:
        """
        Deserialize the datum

        :exception DecodeError: if the bytes do not encode an AuctionDatum
        """
        try:
            return cls.from_data(data.unpack(packed))
        except DataDecodeError as err:
            raise DecodeError(cls.__name__, str(err)) from err

    def to_json(self) -> str:
        """
        :return: JSON detailed schema representation
        """
        return json.dumps(data.to_json(self.to_data()))

    @classmethod
    def from_json(cls, json_data: str | dict[str, Any]) -> Self:
        """
        :param json_data: JSON detailed schema representation, either as text or already parsed
        :exception DecodeError: if the JSON does not encode an AuctionDatum
        """
        try:
            if isinstance(json_data, str):
                json_data = json.loads(json_data)
            return cls.from_data(data.from_json(json_data))
        except (DataDecodeError, json.JSONDecodeError) as err:
            raise DecodeError(cls.__name__, str(err)) from err
