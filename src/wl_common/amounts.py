"""Single-precision arithmetic utilities for wallet balances.

Balances live in REAL (float4) columns, so every value the store hands back
has already been rounded to single precision. Amounts compared against or
combined with a stored balance must be rounded the same way first.
"""

import math
import struct

_FLOAT4 = struct.Struct("<f")


def to_real(value: float) -> float:
    """Round a Python float to the nearest REAL: 0.7 -> 0.699999988079071.

    Values beyond the REAL range become infinities of the same sign.
    """
    try:
        return _FLOAT4.unpack(_FLOAT4.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)
