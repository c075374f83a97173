"""ULID and human readable code generation helpers."""

import secrets
import string
import time
from typing import Callable, Optional

import ulid

from .constants import (
    BOOKING_REFERENCE_CLOCK_DIGITS,
    BOOKING_REFERENCE_PREFIX,
    BOOKING_REFERENCE_SUFFIX_LENGTH,
    CONFIRMATION_CODE_LENGTH,
)

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ulid.ULID())


def is_valid_ulid(ulid_str: str) -> bool:
    try:
        ulid.ULID.from_str(ulid_str)
    except (ValueError, TypeError):
        return False
    return True


def _random_code(length: int) -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


def generate_booking_reference(clock: Optional[Callable[[], float]] = None) -> str:
    """
    Build a booking reference such as ``BC12345678K7``.

    The middle part is the last eight digits of the epoch-millisecond clock,
    followed by two random uppercase alphanumerics.
    """
    now = clock() if clock is not None else time.time()
    millis = str(int(now * 1000))[-BOOKING_REFERENCE_CLOCK_DIGITS:]
    return (
        f"{BOOKING_REFERENCE_PREFIX}"
        f"{millis.zfill(BOOKING_REFERENCE_CLOCK_DIGITS)}"
        f"{_random_code(BOOKING_REFERENCE_SUFFIX_LENGTH)}"
    )


def generate_confirmation_code() -> str:
    return _random_code(CONFIRMATION_CODE_LENGTH)
