"""
Command used to locate the live auction for an asset
"""
from dataclasses import dataclass

from escrow_auction.auction.domain.auction import AuctionDatum
from escrow_auction.auction.errors import (
    AmbiguousLiveAuction,
    AuctionNotFound,
    AuctionTokenMismatch,
    DatumNotFound,
)
from escrow_auction.core.command import Command
from escrow_auction.ledger.context import LedgerSnapshot
from escrow_auction.ledger.model import (
    CurrencySymbol,
    TokenName,
    TxOut,
    TxOutRef,
    normalize_currency_symbol,
)


@dataclass(slots=True, frozen=True)
class AuctionAsset:
    """
    Identifies the auctioned asset
    """

    currency: CurrencySymbol
    token: TokenName

    def __post_init__(self):
        # frozen dataclass
        object.__setattr__(self, "currency", normalize_currency_symbol(self.currency))


@dataclass(slots=True, frozen=True)
class LiveAuction:
    """
    The escrow output that carries the current auction state
    """

    out_ref: TxOutRef
    output: TxOut
    datum: AuctionDatum


class FindLiveAuction(Command[AuctionAsset, LiveAuction]):
    """
    Finds the unique escrow output that holds exactly 1 unit of the auctioned asset.

    :exception AuctionNotFound: if no output holds the asset
    :exception AmbiguousLiveAuction: if more than one output holds the asset
    :exception DatumNotFound: if the output datum is unknown
    :exception DecodeError: if the output datum is not an AuctionDatum
    :exception AuctionTokenMismatch: if the datum describes a different asset
    """

    def __init__(self, snapshot: LedgerSnapshot):
        """
        :param snapshot: unspent outputs to search, typically the outputs held by the auction script address
        """
        self._snapshot = snapshot

    def __call__(self, args: AuctionAsset) -> LiveAuction:
        logger = self.get_logger()

        matches = sorted(
            (
                (out_ref, output)
                for out_ref, output in self._snapshot.utxos.items()
                if output.value.quantity_of(args.currency, args.token) == 1
            ),
            key=lambda match: match[0],
        )
        if not matches:
            raise AuctionNotFound(args.currency, args.token)
        if len(matches) > 1:
            raise AmbiguousLiveAuction(
                args.currency,
                args.token,
                [out_ref for out_ref, _output in matches],
            )

        ((out_ref, output),) = matches
        if output.datum_hash is None:
            raise DatumNotFound(None)
        datum_data = self._snapshot.find_datum(output.datum_hash)
        if datum_data is None:
            raise DatumNotFound(output.datum_hash)
        datum = AuctionDatum.from_data(datum_data)

        details = datum.auction_details
        if (details.currency, details.token) != (args.currency, args.token):
            raise AuctionTokenMismatch(
                expected=(args.currency, args.token),
                actual=(details.currency, details.token),
            )

        logger.debug("found live auction for %s.%s at %s", args.currency, args.token, out_ref)
        return LiveAuction(out_ref=out_ref, output=output, datum=datum)


def find_live_auction(
    snapshot: LedgerSnapshot,
    currency: CurrencySymbol,
    token: TokenName,
) -> LiveAuction:
    """
    Locates the current state of the auction for the specified asset.

    See :class:`FindLiveAuction`
    """
    return FindLiveAuction(snapshot)(AuctionAsset(currency, token))
