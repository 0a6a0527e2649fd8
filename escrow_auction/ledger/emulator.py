"""
In-memory ledger emulator

The emulator plays the role of the ledger host:

- it keeps track of unspent outputs and the datums attached to them
- before a transaction is accepted, the validator script guarding each spent script output is run
  against the spent output's datum, the redeemer and the transaction
- an accepted transaction atomically consumes its inputs and creates its outputs

The ledger's consumption rule - an output can be spent by at most one transaction - is the only
concurrency control. Signatures, fees and value conservation are not checked.
"""

from dataclasses import dataclass
from typing import Callable, Protocol

import algosdk.encoding

from escrow_auction.core.logging import get_logger
from escrow_auction.ledger import data
from escrow_auction.ledger.context import (
    LedgerSnapshot,
    TransactionContext,
    TxInInfo,
    witness_datums,
)
from escrow_auction.ledger.data import Constr, Data
from escrow_auction.ledger.errors import (
    InputAlreadySpent,
    LedgerError,
    MissingDatumWitness,
    MissingRedeemer,
    NoInputs,
    OutsideValidityRange,
    TransactionRejected,
)
from escrow_auction.ledger.model import (
    Address,
    DatumHash,
    Interval,
    POSIXTime,
    TxId,
    TxOut,
    TxOutRef,
    Value,
)


class ScriptResult(Protocol):
    """
    Result returned by a validator script
    """

    @property
    def rejection(self) -> Exception | None:
        """
        :return: None if the script accepted the transaction
        """


# (datum, redeemer, context) -> result
Script = Callable[[Data, Data, TransactionContext], ScriptResult]


def _optional(value: Data | None) -> Constr:
    return Constr(0, ()) if value is None else Constr(1, (value,))


@dataclass(slots=True, frozen=True)
class TxIn:
    """
    Transaction input

    :field:`redeemer` - required when spending a script output
    """

    out_ref: TxOutRef
    redeemer: Data | None = None


@dataclass(slots=True, frozen=True)
class Transaction:
    """
    Transaction submitted to the ledger

    :field:`datums` - datum witnesses, i.e., the datums attached to the spent script outputs
        and to the new outputs
    """

    inputs: tuple[TxIn, ...]
    outputs: tuple[TxOut, ...]
    datums: tuple[Data, ...] = ()
    valid_range: Interval = Interval()

    def to_data(self) -> Constr:
        """
        Converts to its wire format, which is used to compute the transaction ID
        """
        return Constr(
            0,
            (
                [
                    Constr(
                        0,
                        (
                            bytes.fromhex(txn_input.out_ref.tx_id),
                            txn_input.out_ref.index,
                            _optional(txn_input.redeemer),
                        ),
                    )
                    for txn_input in self.inputs
                ],
                [
                    Constr(
                        0,
                        (
                            algosdk.encoding.decode_address(output.address),
                            output.value.micro_algos,
                            [
                                Constr(
                                    0, (bytes.fromhex(currency), token.encode(), quantity)
                                )
                                for (currency, token), quantity in output.value.assets
                            ],
                            _optional(
                                None
                                if output.datum_hash is None
                                else bytes.fromhex(output.datum_hash)
                            ),
                        ),
                    )
                    for output in self.outputs
                ],
                list(self.datums),
                Constr(
                    0,
                    (
                        _optional(self.valid_range.lower),
                        _optional(self.valid_range.upper),
                    ),
                ),
            ),
        )

    @property
    def tx_id(self) -> TxId:
        """
        :return: hex encoded checksum of the encoded transaction
        """
        return TxId(algosdk.encoding.checksum(data.pack(self.to_data())).hex())


class Emulator:
    """
    In-memory ledger
    """

    def __init__(
        self,
        scripts: dict[Address, Script] | None = None,
        current_time: POSIXTime = POSIXTime(0),
    ):
        """
        :param scripts: validator scripts keyed by the script address they guard
        :param current_time: ledger time in POSIX milliseconds
        """
        self._scripts: dict[Address, Script] = dict(scripts) if scripts else {}
        self._utxos: dict[TxOutRef, TxOut] = {}
        self._datums: dict[DatumHash, Data] = {}
        self.current_time = current_time
        self._genesis_count = 0
        self._logger = get_logger(self)

    def fund(
        self,
        address: Address,
        value: Value,
        datum: Data | None = None,
    ) -> TxOutRef:
        """
        Creates an output out of thin air.
        Used to seed the ledger with initial outputs.
        """
        datum_hash = None
        if datum is not None:
            datum_hash = data.data_hash(datum)
            self._datums[datum_hash] = datum

        self._genesis_count += 1
        tx_id = TxId(
            algosdk.encoding.checksum(
                b"genesis" + self._genesis_count.to_bytes(8, "big")
            ).hex()
        )
        out_ref = TxOutRef(tx_id, 0)
        self._utxos[out_ref] = TxOut(address, value, datum_hash)
        self._logger.info("funded %s with [%s] at %s", address, value, out_ref)
        return out_ref

    def submit(self, txn: Transaction) -> TxId:
        """
        Validates and applies the transaction.

        :return: transaction ID
        :exception NoInputs: if the transaction spends nothing
        :exception InputAlreadySpent: if an input does not reference an unspent output
        :exception OutsideValidityRange: if the current time is outside the transaction validity range
        :exception MissingDatumWitness: if a spent script output datum is not included
        :exception MissingRedeemer: if a script input has no redeemer
        :exception TransactionRejected: if a validator script rejects the transaction
        """
        try:
            self._validate(txn)
        except LedgerError as err:
            self._logger.warning("transaction rejected: %s", err)
            raise

        tx_id = txn.tx_id
        for txn_input in txn.inputs:
            del self._utxos[txn_input.out_ref]
        for index, output in enumerate(txn.outputs):
            self._utxos[TxOutRef(tx_id, index)] = output
        self._datums.update(witness_datums(txn.datums))

        self._logger.info(
            "transaction accepted: %s [inputs=%s] [outputs=%s]",
            tx_id,
            len(txn.inputs),
            len(txn.outputs),
        )
        return tx_id

    def _validate(self, txn: Transaction):
        if not txn.inputs:
            raise NoInputs()

        spent: list[TxInInfo] = []
        seen: set[TxOutRef] = set()
        for txn_input in txn.inputs:
            output = self._utxos.get(txn_input.out_ref)
            if output is None or txn_input.out_ref in seen:
                raise InputAlreadySpent(txn_input.out_ref)
            seen.add(txn_input.out_ref)
            spent.append(TxInInfo(txn_input.out_ref, output))

        if not txn.valid_range.contains(
            Interval(self.current_time, self.current_time)
        ):
            raise OutsideValidityRange(self.current_time, txn.valid_range)

        datums = witness_datums(txn.datums)
        for txn_input, in_info in zip(txn.inputs, spent):
            script = self._scripts.get(in_info.resolved.address)
            if script is None:
                continue

            datum_hash = in_info.resolved.datum_hash
            datum = None if datum_hash is None else datums.get(datum_hash)
            if datum is None:
                raise MissingDatumWitness(in_info.out_ref, datum_hash)
            if txn_input.redeemer is None:
                raise MissingRedeemer(in_info.out_ref)

            context = TransactionContext(
                spent=in_info,
                outputs=txn.outputs,
                datums=datums,
                inputs=tuple(spent),
                valid_range=txn.valid_range,
            )
            result = script(datum, txn_input.redeemer, context)
            if result.rejection is not None:
                raise TransactionRejected(in_info.out_ref, result.rejection)

    def utxo(self, out_ref: TxOutRef) -> TxOut | None:
        """
        :return: None if the output does not exist or has been spent
        """
        return self._utxos.get(out_ref)

    def snapshot(self) -> LedgerSnapshot:
        """
        :return: point in time copy of the unspent outputs and known datums
        """
        return LedgerSnapshot(utxos=dict(self._utxos), datums=dict(self._datums))

    def utxos_at(self, address: Address) -> LedgerSnapshot:
        """
        :return: point in time copy of the unspent outputs held by the specified address
        """
        return self.snapshot().at(address)
