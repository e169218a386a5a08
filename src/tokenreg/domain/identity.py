"""Caller and token identities.

Identities are opaque strings compared verbatim, case included: a
checksummed address and its lowercase form are two different callers
and two different tokens. Callers that mix spellings must normalize
before calling the registry. The only structure the registry recognises
is the *null* identity (any case of the ``0x`` prefix), which can never
own it.
"""

from __future__ import annotations

import re

NULL_ADDRESS = "0x0000000000000000000000000000000000000000"

_ZERO_ADDRESS_RE = re.compile(r"^0[xX]0+$")


def is_null_identity(value: str | None) -> bool:
    """Return True for ``None``, blank strings, and the zero address.

    Examples:
        >>> is_null_identity("")
        True
        >>> is_null_identity(NULL_ADDRESS)
        True
        >>> is_null_identity("0x5eF09cc3e4E63F9d37F1dc57b3FC6e6180178794")
        False
    """
    if value is None:
        return True
    stripped = value.strip()
    if not stripped:
        return True
    return _ZERO_ADDRESS_RE.match(stripped) is not None
