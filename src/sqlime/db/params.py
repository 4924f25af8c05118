"""Parameter encoding: Python values to positional engine bindings."""

from collections.abc import Iterable
from datetime import date
from enum import Enum

import apsw

from sqlime.db.errors import EngineError

# The engine's storage classes: NULL, 64-bit integer, 64-bit float, UTF-8 text, blob.
SQLParameter = int | float | str | bytes | None

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def encode_parameter(value: object) -> SQLParameter:
    """Normalize ``value`` into one of the engine's storage classes.

    Booleans become 0/1, enum members their value, dates ISO-8601 text.
    Mutable buffers are copied so the caller may reuse them right away.
    """
    if isinstance(value, Enum):
        value = value.value
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        number = int(value)
        if not INT64_MIN <= number <= INT64_MAX:
            raise OverflowError(f"integer {number} does not fit in a signed 64-bit parameter")
        return number
    if isinstance(value, float):
        return float(value)
    if isinstance(value, str):
        return str(value)
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value)
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"unsupported parameter type {type(value).__name__}")


class ParameterBindings:
    """Values bound to a statement's parameters.

    Slots are addressed 1-based, like the engine's bind calls, and start out
    NULL. Binding past the last parameter fails with ``SQLITE_RANGE``.
    """

    __slots__ = ("_slots",)

    def __init__(self, count: int) -> None:
        """Create ``count`` NULL slots."""
        self._slots: list[SQLParameter] = [None] * count

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def values(self) -> tuple[SQLParameter, ...]:
        """Bound values in parameter order."""
        return tuple(self._slots)

    def bind_at(self, index: int, value: object) -> None:
        """Bind ``value`` to the 1-based parameter ``index``."""
        if not 1 <= index <= len(self._slots):
            raise EngineError.from_code(apsw.SQLITE_RANGE)
        self._slots[index - 1] = encode_parameter(value)

    def bind(self, parameters: Iterable[object]) -> None:
        """Bind each entry at position ``offset + 1``, stopping at the first failure."""
        if isinstance(parameters, str | bytes):
            raise TypeError("parameters must be a sequence of values, not a single value")
        for offset, value in enumerate(parameters):
            self.bind_at(offset + 1, value)

    def clear(self) -> None:
        """Reset every parameter to NULL."""
        self._slots = [None] * len(self._slots)

    def __repr__(self) -> str:
        return f"ParameterBindings({self._slots!r})"
