import unittest
from dataclasses import replace

from escrow_auction.auction.commands.find_live_auction import (
    AuctionAsset,
    FindLiveAuction,
    find_live_auction,
)
from escrow_auction.auction.contracts.auction import AUCTION_ADDRESS
from escrow_auction.auction.domain.auction import AuctionDatum
from escrow_auction.auction.errors import (
    AmbiguousLiveAuction,
    AuctionNotFound,
    AuctionTokenMismatch,
    DatumNotFound,
    DecodeError,
)
from escrow_auction.ledger.context import LedgerSnapshot, witness_datums
from escrow_auction.ledger.data import Constr, data_hash
from escrow_auction.ledger.model import (
    CurrencySymbol,
    TokenName,
    TxId,
    TxOut,
    TxOutRef,
    Value,
)
from tests.test_support import AuctionTestCase, CURRENCY, TOKEN

OTHER_CURRENCY = CurrencySymbol("00" * 28)


class FindLiveAuctionTestCase(AuctionTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.datum = AuctionDatum.start(self.auction_details)
        self.out_ref = TxOutRef(TxId("01" * 32), 0)
        self.output = TxOut(AUCTION_ADDRESS, self.datum.escrow_value, self.datum.hash())

    def snapshot(self, utxos: dict[TxOutRef, TxOut], datums=None) -> LedgerSnapshot:
        return LedgerSnapshot(
            utxos=utxos,
            datums=witness_datums(
                datums if datums is not None else [self.datum.to_data()]
            ),
        )

    def test_found(self):
        # SETUP
        other_output = TxOut(
            AUCTION_ADDRESS,
            Value.singleton(OTHER_CURRENCY, TOKEN, 1),
        )
        snapshot = self.snapshot(
            {
                self.out_ref: self.output,
                TxOutRef(TxId("02" * 32), 1): other_output,
            }
        )

        # ACT
        live_auction = find_live_auction(snapshot, CURRENCY, TOKEN)

        # ASSERT
        self.assertEqual(live_auction.out_ref, self.out_ref)
        self.assertEqual(live_auction.output, self.output)
        self.assertEqual(live_auction.datum, self.datum)

        with self.subTest("lookup is repeatable"):
            find = FindLiveAuction(snapshot)
            self.assertEqual(
                find(AuctionAsset(CURRENCY, TOKEN)),
                find(AuctionAsset(CURRENCY, TOKEN)),
            )

    def test_currency_symbol_case(self):
        # SETUP
        details = replace(
            self.auction_details, currency=CurrencySymbol(CURRENCY.upper())
        )
        datum = AuctionDatum.start(details)
        snapshot = self.snapshot(
            {self.out_ref: TxOut(AUCTION_ADDRESS, datum.escrow_value, datum.hash())},
            datums=[datum.to_data()],
        )

        for currency in [CURRENCY, CurrencySymbol(CURRENCY.upper())]:
            with self.subTest(currency=currency):
                # ACT
                live_auction = find_live_auction(snapshot, currency, TOKEN)

                # ASSERT
                self.assertEqual(live_auction.out_ref, self.out_ref)
                self.assertEqual(live_auction.datum, datum)

    def test_not_found(self):
        with self.subTest("empty snapshot"):
            with self.assertRaises(AuctionNotFound):
                find_live_auction(self.snapshot({}), CURRENCY, TOKEN)

        with self.subTest("different asset"):
            with self.assertRaises(AuctionNotFound):
                find_live_auction(
                    self.snapshot({self.out_ref: self.output}),
                    CURRENCY,
                    TokenName("other"),
                )

        with self.subTest("quantity must be exactly 1"):
            output = TxOut(
                AUCTION_ADDRESS,
                self.datum.escrow_value + self.auction_details.asset_value,
                self.datum.hash(),
            )
            with self.assertRaises(AuctionNotFound):
                find_live_auction(
                    self.snapshot({self.out_ref: output}), CURRENCY, TOKEN
                )

    def test_ambiguous(self):
        other_out_ref = TxOutRef(TxId("02" * 32), 0)
        snapshot = self.snapshot(
            {
                other_out_ref: self.output,
                self.out_ref: self.output,
            }
        )
        with self.assertRaises(AmbiguousLiveAuction) as err:
            find_live_auction(snapshot, CURRENCY, TOKEN)
        self.assertEqual(err.exception.out_refs, [self.out_ref, other_out_ref])

    def test_datum_not_found(self):
        with self.subTest("output has no datum hash"):
            output = TxOut(AUCTION_ADDRESS, self.datum.escrow_value)
            with self.assertRaises(DatumNotFound):
                find_live_auction(
                    self.snapshot({self.out_ref: output}), CURRENCY, TOKEN
                )

        with self.subTest("datum is unknown"):
            with self.assertRaises(DatumNotFound):
                find_live_auction(
                    self.snapshot({self.out_ref: self.output}, datums=[]),
                    CURRENCY,
                    TOKEN,
                )

    def test_decode_error(self):
        garbage = Constr(0, (b"garbage",))
        output = TxOut(AUCTION_ADDRESS, self.datum.escrow_value, data_hash(garbage))
        with self.assertRaises(DecodeError):
            find_live_auction(
                self.snapshot({self.out_ref: output}, datums=[garbage]),
                CURRENCY,
                TOKEN,
            )

    def test_token_mismatch(self):
        datum = AuctionDatum.start(replace(self.auction_details, token=TokenName("T")))
        output = TxOut(AUCTION_ADDRESS, self.datum.escrow_value, datum.hash())
        with self.assertRaises(AuctionTokenMismatch) as err:
            find_live_auction(
                self.snapshot({self.out_ref: output}, datums=[datum.to_data()]),
                CURRENCY,
                TOKEN,
            )
        self.assertEqual(err.exception.actual, (CURRENCY, TokenName("T")))


if __name__ == "__main__":
    unittest.main()
