"""
Transaction context that a validator script is evaluated against
"""

from dataclasses import dataclass, field
from typing import Iterable

from escrow_auction.ledger.data import Data, data_hash
from escrow_auction.ledger.model import (
    Address,
    DatumHash,
    Interval,
    TxOut,
    TxOutRef,
)


@dataclass(slots=True, frozen=True)
class TxInInfo:
    """
    Transaction input together with the output it spends
    """

    out_ref: TxOutRef
    resolved: TxOut


def witness_datums(datums: Iterable[Data]) -> dict[DatumHash, Data]:
    """
    :return: datum witnesses keyed by datum hash
    """
    return {data_hash(datum): datum for datum in datums}


@dataclass(slots=True, frozen=True)
class TransactionContext:
    """
    The view of a candidate transaction that is given to the escrow validator.

    :field:`spent` - escrow input that is being validated
    :field:`outputs` - all outputs created by the transaction, in order
    :field:`datums` - datum witnesses included in the transaction, keyed by datum hash
    :field:`inputs` - all inputs consumed by the transaction
    :field:`valid_range` - transaction validity range
    """

    spent: TxInInfo
    outputs: tuple[TxOut, ...]
    datums: dict[DatumHash, Data] = field(default_factory=dict)
    inputs: tuple[TxInInfo, ...] = ()
    valid_range: Interval = Interval()

    @property
    def own_address(self) -> Address:
        """
        :return: address of the escrow output being spent
        """
        return self.spent.resolved.address

    def continuing_outputs(self) -> list[TxOut]:
        """
        :return: outputs that are paid back to the escrow address
        """
        return self.outputs_at(self.own_address)

    def outputs_at(self, address: Address) -> list[TxOut]:
        """
        :return: outputs paid to the specified address
        """
        return [output for output in self.outputs if output.address == address]

    def find_datum(self, datum_hash: DatumHash) -> Data | None:
        """
        :return: the witnessed datum for the specified hash - None if the transaction does not include it
        """
        return self.datums.get(datum_hash)


@dataclass(slots=True, frozen=True)
class LedgerSnapshot:
    """
    Point in time view of unspent outputs together with the datums attached to them

    :field:`utxos` - unspent outputs keyed by output reference
    :field:`datums` - known datums keyed by datum hash
    """

    utxos: dict[TxOutRef, TxOut]
    datums: dict[DatumHash, Data] = field(default_factory=dict)

    def at(self, address: Address) -> "LedgerSnapshot":  # pylint: disable=invalid-name
        """
        :return: snapshot filtered to the outputs held by the specified address
        """
        return LedgerSnapshot(
            utxos={
                out_ref: output
                for out_ref, output in self.utxos.items()
                if output.address == address
            },
            datums=self.datums,
        )

    def find_datum(self, datum_hash: DatumHash) -> Data | None:
        """
        :return: datum for the specified hash - None if unknown
        """
        return self.datums.get(datum_hash)
