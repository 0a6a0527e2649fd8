"""
Auction inspection CLI

Works with datum and redeemer files in the JSON detailed schema, e.g., `bid-1.json`.
The CLI never builds or submits transactions.
"""
import json
import sys
import tomllib
from pathlib import Path
from typing import Any

import click

from escrow_auction.auction.contracts.auction import (
    AUCTION_ADDRESS,
    AuctionValidator,
    deadline,
    min_acceptable_bid,
)
from escrow_auction.auction.domain import action as auction_action
from escrow_auction.auction.domain.auction import AuctionDatum
from escrow_auction.auction.errors import DecodeError
from escrow_auction.core.config import AppConfig, InvalidConfigError
from escrow_auction.core.logging import configure_logging
from escrow_auction.ledger import data
from escrow_auction.ledger.context import TransactionContext, TxInInfo, witness_datums
from escrow_auction.ledger.data import DataDecodeError
from escrow_auction.ledger.model import (
    Address,
    CurrencySymbol,
    DatumHash,
    Interval,
    MicroAlgos,
    POSIXTime,
    TokenName,
    TxId,
    TxOut,
    TxOutRef,
    Value,
)


class InvalidTransactionFile(click.ClickException):
    """
    The transaction file does not describe a transaction
    """


def _read_json(file: Path) -> Any:
    with open(file, "rb") as json_file:
        try:
            return json.load(json_file)
        except json.JSONDecodeError as err:
            raise click.BadParameter(f"{file}: {err}") from err


def _load_datum(file: Path) -> AuctionDatum:
    try:
        return AuctionDatum.from_json(_read_json(file))
    except DecodeError as err:
        raise click.BadParameter(f"{file}: {err}") from err


def transaction_context_from_json(
    txn: dict[str, Any],
    datum: AuctionDatum,
) -> TransactionContext:
    """
    Builds the context for validating a transaction that spends the escrow output carrying `datum`.

    :param txn: transaction JSON::

        {"spent": {"tx_id": hex, "index": n},
         "valid_range": {"lower": ms | null, "upper": ms | null},
         "outputs": [{"address": addr, "micro_algos": n,
                      "assets": [{"currency": hex, "token": str, "quantity": n}],
                      "datum_hash": hex | null}],
         "datums": [<detailed schema datum>]}
    """

    def to_output(output: dict[str, Any]) -> TxOut:
        return TxOut(
            address=Address(output["address"]),
            value=Value(
                micro_algos=MicroAlgos(output.get("micro_algos", 0)),
                assets=tuple(
                    (
                        (CurrencySymbol(asset["currency"]), TokenName(asset["token"])),
                        asset["quantity"],
                    )
                    for asset in output.get("assets", [])
                ),
            ),
            datum_hash=None
            if output.get("datum_hash") is None
            else DatumHash(output["datum_hash"]),
        )

    try:
        spent = txn["spent"]
        valid_range = txn.get("valid_range", {})
        datums = [data.from_json(item) for item in txn.get("datums", [])]
        return TransactionContext(
            spent=TxInInfo(
                out_ref=TxOutRef(TxId(spent["tx_id"]), spent["index"]),
                resolved=TxOut(AUCTION_ADDRESS, datum.escrow_value, datum.hash()),
            ),
            outputs=tuple(to_output(output) for output in txn["outputs"]),
            datums=witness_datums(datums),
            valid_range=Interval(
                lower=None
                if valid_range.get("lower") is None
                else POSIXTime(valid_range["lower"]),
                upper=None
                if valid_range.get("upper") is None
                else POSIXTime(valid_range["upper"]),
            ),
        )
    except (KeyError, TypeError, ValueError, DataDecodeError) as err:
        raise InvalidTransactionFile(f"invalid transaction: {err!r}") from err


@click.group()
@click.option(
    "--config-file",
    type=click.Path(exists=True, resolve_path=True, readable=True, path_type=Path),
    help="TOML config file",
)
@click.pass_context
def app(ctx: click.Context, config_file: Path | None = None):
    """
    Escrow auction tools
    """
    try:
        config = (
            AppConfig.from_config_file(config_file)
            if config_file is not None
            else AppConfig()
        )
    except (tomllib.TOMLDecodeError, InvalidConfigError) as err:
        raise click.BadParameter(
            f"{config_file}: {err}", param_hint="--config-file"
        ) from err
    configure_logging(level=config.logging.level)
    ctx.obj = config


@app.command()
@click.argument(
    "datum_file",
    type=click.Path(exists=True, readable=True, path_type=Path),
)
def min_bid(datum_file: Path):
    """
    Prints the minimum acceptable bid. A new bid must be greater than this amount.
    """
    click.echo(min_acceptable_bid(_load_datum(datum_file)))


@app.command(name="deadline")
@click.argument(
    "datum_file",
    type=click.Path(exists=True, readable=True, path_type=Path),
)
def show_deadline(datum_file: Path):
    """
    Prints the bidding deadline as a POSIX timestamp in milliseconds
    """
    click.echo(deadline(_load_datum(datum_file)))


@app.command()
@click.argument(
    "datum_file",
    type=click.Path(exists=True, readable=True, path_type=Path),
)
def datum_hash(datum_file: Path):
    """
    Prints the datum hash
    """
    click.echo(_load_datum(datum_file).hash())


@app.command()
@click.argument(
    "datum_file",
    type=click.Path(exists=True, readable=True, path_type=Path),
)
@click.argument(
    "redeemer_file",
    type=click.Path(exists=True, readable=True, path_type=Path),
)
@click.argument(
    "txn_file",
    type=click.Path(exists=True, readable=True, path_type=Path),
)
@click.pass_obj
def validate(
    config: AppConfig,
    datum_file: Path,
    redeemer_file: Path,
    txn_file: Path,
):
    """
    Validates a transaction that spends the escrow output.

    Prints "accepted", or the reason the transaction is rejected and exits with status 1.
    """
    datum = _load_datum(datum_file)
    try:
        action = auction_action.from_json(_read_json(redeemer_file))
    except DecodeError as err:
        raise click.BadParameter(f"{redeemer_file}: {err}") from err
    context = transaction_context_from_json(_read_json(txn_file), datum)

    result = AuctionValidator(config.validator).validate(datum, action, context)
    click.echo(str(result))
    if not result.accepted:
        sys.exit(1)


if __name__ == "__main__":
    app()  # pylint: disable=no-value-for-parameter
