import json
import logging
import tempfile
import unittest
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from escrow_auction.auction.contracts.auction import AUCTION_ADDRESS
from escrow_auction.auction.domain import action
from escrow_auction.auction.domain.action import Bid
from escrow_auction.auction.domain.auction import AuctionDatum, BidDetails
from escrow_auction.cli.main import app
from escrow_auction.core.logging import configure_logging
from escrow_auction.ledger import data
from escrow_auction.ledger.model import MicroAlgos, POSIXTime
from tests.test_support import (
    AuctionTestCase,
    BID_TIME_INCREMENT,
    CURRENCY,
    START_TIME,
    TOKEN,
)


class CliTestCase(AuctionTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.runner = CliRunner()
        self.datum = AuctionDatum.start(self.auction_details)
        self._tmp_dir = tempfile.TemporaryDirectory()
        self.tmp_dir = Path(self._tmp_dir.name)
        self.datum_file = self.write_json("datum.json", json.loads(self.datum.to_json()))

    def tearDown(self) -> None:
        self._tmp_dir.cleanup()
        # the CLI reconfigures logging
        configure_logging(level=logging.DEBUG)

    def write_json(self, name: str, json_data: Any) -> str:
        file = self.tmp_dir / name
        file.write_text(json.dumps(json_data))
        return str(file)

    def bid_files(self, amount: int) -> tuple[str, str]:
        bid = BidDetails(self.bidder_1, MicroAlgos(amount), POSIXTime(START_TIME + 1))
        new_datum = self.datum.with_bid(bid)
        redeemer_file = self.write_json(
            "bid.json", json.loads(action.to_json(Bid(bid)))
        )
        txn_file = self.write_json(
            "txn.json",
            {
                "spent": {"tx_id": "ab" * 32, "index": 0},
                "valid_range": {"lower": START_TIME, "upper": None},
                "outputs": [
                    {
                        "address": AUCTION_ADDRESS,
                        "micro_algos": amount,
                        "assets": [
                            {"currency": CURRENCY, "token": TOKEN, "quantity": 1}
                        ],
                        "datum_hash": new_datum.hash(),
                    },
                    {"address": self.seller, "micro_algos": 100},
                ],
                "datums": [
                    data.to_json(self.datum.to_data()),
                    data.to_json(new_datum.to_data()),
                ],
            },
        )
        return redeemer_file, txn_file

    def test_min_bid(self):
        result = self.runner.invoke(app, ["min-bid", self.datum_file])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.stdout.strip(), "105")

    def test_deadline(self):
        result = self.runner.invoke(app, ["deadline", self.datum_file])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(
            result.stdout.strip(), str(START_TIME + BID_TIME_INCREMENT)
        )

    def test_datum_hash(self):
        result = self.runner.invoke(app, ["datum-hash", self.datum_file])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.stdout.strip(), self.datum.hash())

    def test_invalid_datum_file(self):
        for name, content in [("invalid.json", "{"), ("wrong.json", '{"int": 1}')]:
            with self.subTest(content=content):
                file = self.tmp_dir / name
                file.write_text(content)
                result = self.runner.invoke(app, ["min-bid", str(file)])
                self.assertEqual(result.exit_code, 2, result.output)

    def test_validate_accepted(self):
        redeemer_file, txn_file = self.bid_files(106)
        result = self.runner.invoke(
            app, ["validate", self.datum_file, redeemer_file, txn_file]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.stdout.strip(), "accepted")

    def test_validate_rejected(self):
        redeemer_file, txn_file = self.bid_files(105)
        result = self.runner.invoke(
            app, ["validate", self.datum_file, redeemer_file, txn_file]
        )
        self.assertEqual(result.exit_code, 1, result.output)
        self.assertEqual(
            result.stdout.strip(),
            "rejected: Bid is too low: 105 must be greater than 105",
        )

    def test_validate_with_time_window(self):
        config_file = self.tmp_dir / "config.toml"
        config_file.write_text("[validator]\nenforce_time_window = true\n")
        redeemer_file, txn_file = self.bid_files(106)

        result = self.runner.invoke(
            app,
            [
                "--config-file",
                str(config_file),
                "validate",
                self.datum_file,
                redeemer_file,
                txn_file,
            ],
        )

        # the validity range is not bounded by the deadline
        self.assertEqual(result.exit_code, 1, result.output)
        self.assertTrue(result.stdout.startswith("rejected: Bid is too late"))

    def test_invalid_config_file(self):
        config_file = self.tmp_dir / "config.toml"
        config_file.write_text("[validator]\nenforce_time_window = 1\n")
        result = self.runner.invoke(
            app, ["--config-file", str(config_file), "min-bid", self.datum_file]
        )
        self.assertEqual(result.exit_code, 2, result.output)

    def test_invalid_transaction_file(self):
        redeemer_file, _txn_file = self.bid_files(106)
        txn_file = self.write_json("bad-txn.json", {"outputs": []})
        result = self.runner.invoke(
            app, ["validate", self.datum_file, redeemer_file, txn_file]
        )
        self.assertEqual(result.exit_code, 1, result.output)
        self.assertIn("invalid transaction", result.output)


if __name__ == "__main__":
    unittest.main()
