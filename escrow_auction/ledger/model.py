"""
Ledger domain model

The auction escrow lives on a UTXO style ledger: transactions consume unspent outputs
and create new outputs. Every output is owned by an address, carries a value, and may
have a datum attached by hash.
"""

import re
from dataclasses import dataclass
from typing import NewType

import algosdk.encoding

# Algorand style account address. The address is 58 characters long.
# Public key accounts and the escrow script share the same address format.
Address = NewType("Address", str)

# hex encoded minting policy hash
CurrencySymbol = NewType("CurrencySymbol", str)

TokenName = NewType("TokenName", str)

# UNIX timestamp in milliseconds
POSIXTime = NewType("POSIXTime", int)

# the ledger's native settlement currency unit
MicroAlgos = NewType("MicroAlgos", int)

# hex encoded SHA-512/256 hash of the binary encoded datum
DatumHash = NewType("DatumHash", str)

# hex encoded SHA-512/256 hash of the binary encoded transaction
TxId = NewType("TxId", str)

# domain separation prefix used to derive script addresses
PROGRAM_PREFIX = b"Program"


def script_address(program: bytes) -> Address:
    """
    Derives the escrow address for a validator script from the script's program bytes.
    """
    program_checksum = algosdk.encoding.checksum(PROGRAM_PREFIX + program)
    return Address(algosdk.encoding.encode_address(program_checksum))


def is_valid_address(address: str) -> bool:
    """
    :return: True if the address is a well formed 58 character address
    """
    return isinstance(address, str) and algosdk.encoding.is_valid_address(address)


_HEX_BYTES = re.compile(r"(?:[0-9a-fA-F]{2})*")


def is_valid_currency_symbol(currency: str) -> bool:
    """
    :return: True if the currency symbol is hex encoded bytes
    """
    return isinstance(currency, str) and _HEX_BYTES.fullmatch(currency) is not None


def normalize_currency_symbol(currency: str) -> CurrencySymbol:
    """
    :return: lower case form, i.e., the form that ``bytes.hex()`` produces
    """
    return CurrencySymbol(currency.lower())


@dataclass(slots=True, frozen=True, order=True)
class TxOutRef:
    """
    Reference to a transaction output
    """

    tx_id: TxId
    index: int

    def __str__(self) -> str:
        return f"{self.tx_id}#{self.index}"


@dataclass(slots=True, frozen=True)
class Interval:
    """
    Transaction validity range, in POSIX milliseconds.

    Bounds are inclusive. None means unbounded.
    """

    lower: POSIXTime | None = None
    upper: POSIXTime | None = None

    @classmethod
    def always(cls) -> "Interval":
        """
        :return: the unbounded interval
        """
        return cls()

    @classmethod
    def from_(cls, lower: POSIXTime) -> "Interval":
        """
        :return: [lower, +inf)
        """
        return cls(lower=lower)

    @classmethod
    def to(cls, upper: POSIXTime) -> "Interval":  # pylint: disable=invalid-name
        """
        :return: (-inf, upper]
        """
        return cls(upper=upper)

    def __post_init__(self):
        if (
            self.lower is not None
            and self.upper is not None
            and self.lower > self.upper
        ):
            raise ValueError(
                f"interval lower bound must not exceed upper bound: [{self.lower}, {self.upper}]"
            )

    def contains(self, other: "Interval") -> bool:
        """
        :return: True if `other` lies completely within this interval
        """
        if self.lower is not None and (other.lower is None or other.lower < self.lower):
            return False
        if self.upper is not None and (other.upper is None or other.upper > self.upper):
            return False
        return True


AssetClass = tuple[CurrencySymbol, TokenName]


@dataclass(slots=True, frozen=True)
class Value:
    """
    Value carried by a transaction output: a settlement amount plus asset holdings.

    Asset holdings are normalized, i.e., currency symbols lower cased, sorted and with zero
    quantities removed, which means structural equality is value equality.
    """

    micro_algos: MicroAlgos = MicroAlgos(0)
    assets: tuple[tuple[AssetClass, int], ...] = ()

    def __post_init__(self):
        holdings: dict[AssetClass, int] = {}
        for (currency, token), quantity in self.assets:
            asset_class = (normalize_currency_symbol(currency), token)
            holdings[asset_class] = holdings.get(asset_class, 0) + quantity
        normalized = tuple(
            sorted(
                (asset_class, quantity)
                for asset_class, quantity in holdings.items()
                if quantity != 0
            )
        )
        # frozen dataclass
        object.__setattr__(self, "assets", normalized)

    @classmethod
    def settlement(cls, amount: int) -> "Value":
        """
        :return: Value that only carries the specified settlement amount
        """
        return cls(micro_algos=MicroAlgos(amount))

    @classmethod
    def singleton(
        cls,
        currency: CurrencySymbol,
        token: TokenName,
        quantity: int,
    ) -> "Value":
        """
        :return: Value that only carries the specified asset quantity
        """
        return cls(assets=(((currency, token), quantity),))

    def quantity_of(self, currency: CurrencySymbol, token: TokenName) -> int:
        """
        :return: asset quantity - zero if the asset is not held
        """
        asset_class = (normalize_currency_symbol(currency), token)
        for held, quantity in self.assets:
            if held == asset_class:
                return quantity
        return 0

    def __add__(self, other: "Value") -> "Value":
        if not isinstance(other, Value):
            return NotImplemented
        return Value(
            micro_algos=MicroAlgos(self.micro_algos + other.micro_algos),
            assets=self.assets + other.assets,
        )

    def __str__(self) -> str:
        assets = ", ".join(
            f"{quantity} {currency}.{token}"
            for (currency, token), quantity in self.assets
        )
        return f"{self.micro_algos} microalgos" + (f" + {assets}" if assets else "")


@dataclass(slots=True, frozen=True)
class TxOut:
    """
    Transaction output
    """

    address: Address
    value: Value
    datum_hash: DatumHash | None = None
