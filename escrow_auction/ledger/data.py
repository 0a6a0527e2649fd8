"""
Structured data attached to ledger records (datums) and to transaction inputs (redeemers).

Data is a tree built from integers, byte strings, lists and tagged constructors.
A constructor is identified by its index and carries an ordered list of fields.

Two encodings are supported:

- binary - msgpack, constructors are packed as `[index, [field, ...]]`. The binary encoding
  is what gets hashed.
- JSON - the "detailed schema" used for datum and redeemer files::

    {"constructor": 0, "fields": [{"bytes": "cafe"}, {"int": 100}, {"list": []}]}
"""

from dataclasses import dataclass
from typing import Any, TypeAlias, Union

import algosdk.encoding
import msgpack  # type: ignore

from escrow_auction.ledger.model import DatumHash

Data: TypeAlias = Union[int, bytes, list["Data"], "Constr"]


@dataclass(slots=True, frozen=True)
class Constr:
    """
    Tagged constructor
    """

    index: int
    fields: tuple[Data, ...]

    def __post_init__(self):
        if self.index < 0:
            raise ValueError(f"constructor index must not be negative: {self.index}")


class DataDecodeError(Exception):
    """
    Raised when encoded data is malformed
    """


def _to_msgpack(data: Data) -> Any:
    match data:
        case bool():
            raise TypeError("bool is not a valid data value")
        case int() | bytes():
            return data
        case Constr(index, fields):
            return [index, [_to_msgpack(item) for item in fields]]
        case list():
            # lists are tagged so that they cannot be confused with constructors
            return {"list": [_to_msgpack(item) for item in data]}
        case _:
            raise TypeError(f"unsupported data type: {type(data).__name__}")


def _from_msgpack(obj: Any) -> Data:
    match obj:
        case bool():
            raise DataDecodeError("bool is not a valid data value")
        case int() | bytes():
            return obj
        case [int() as index, list() as fields] if index >= 0:
            return Constr(index, tuple(_from_msgpack(item) for item in fields))
        case {"list": list() as items} if len(obj) == 1:
            return [_from_msgpack(item) for item in items]
        case _:
            raise DataDecodeError(f"malformed data: {obj!r}")


def pack(data: Data) -> bytes:
    """
    Serializes data into its binary encoding
    """
    return msgpack.packb(_to_msgpack(data), use_bin_type=True)


def unpack(packed: bytes) -> Data:
    """
    Deserializes data from its binary encoding

    :exception DataDecodeError: if the bytes do not encode valid data
    """
    try:
        obj = msgpack.unpackb(packed, raw=False, strict_map_key=True)
    except ValueError as err:
        raise DataDecodeError(f"invalid msgpack: {err}") from err
    return _from_msgpack(obj)


def data_hash(data: Data) -> DatumHash:
    """
    :return: hex encoded SHA-512/256 checksum of the binary encoding
    """
    return DatumHash(algosdk.encoding.checksum(pack(data)).hex())


def to_json(data: Data) -> dict[str, Any]:
    """
    Converts data into its JSON detailed schema representation
    """
    match data:
        case bool():
            raise TypeError("bool is not a valid data value")
        case int():
            return {"int": data}
        case bytes():
            return {"bytes": data.hex()}
        case Constr(index, fields):
            return {"constructor": index, "fields": [to_json(item) for item in fields]}
        case list():
            return {"list": [to_json(item) for item in data]}
        case _:
            raise TypeError(f"unsupported data type: {type(data).__name__}")


def from_json(obj: Any) -> Data:
    """
    Converts the JSON detailed schema representation into data

    :exception DataDecodeError: if the JSON does not describe valid data
    """
    match obj:
        case {"int": int() as value} if not isinstance(value, bool):
            return value
        case {"bytes": str() as value}:
            try:
                return bytes.fromhex(value)
            except ValueError as err:
                raise DataDecodeError(f"invalid hex bytes: {value!r}") from err
        case {"constructor": int() as index, "fields": list() as fields} if index >= 0:
            return Constr(index, tuple(from_json(item) for item in fields))
        case {"list": list() as items}:
            return [from_json(item) for item in items]
        case _:
            raise DataDecodeError(f"malformed data: {obj!r}")
