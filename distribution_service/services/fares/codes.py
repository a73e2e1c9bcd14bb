"""
Sequential fare codes: TAR001, TAR002, ... TAR999.
"""
import logging

from distribution_service.core.exceptions import CodeSequenceExhaustedError
from distribution_service.repositories.fare import FareStore

logger = logging.getLogger(__name__)

FARE_CODE_PREFIX = "TAR"
FARE_CODE_DIGITS = 3
MAX_FARE_NUMBER = 10 ** FARE_CODE_DIGITS - 1


def format_fare_code(number: int) -> str:
    return f"{FARE_CODE_PREFIX}{number:0{FARE_CODE_DIGITS}d}"


def parse_fare_number(code: str) -> int:
    """Numeric suffix of a code; anything unparsable counts as 0."""
    suffix = (code or "").replace(FARE_CODE_PREFIX, "", 1)
    # int() would also take signs, spaces and underscores
    if suffix.isascii() and suffix.isdigit():
        return int(suffix)
    return 0


class FareCodeGenerator:
    """
    Derives the next code from the greatest code in the store.

    Not safe against concurrent creations on its own: callers re-check
    uniqueness before committing.
    """

    def __init__(self, store: FareStore):
        self.store = store

    async def next_code(self) -> str:
        last = await self.store.find_last_by_code(FARE_CODE_PREFIX)
        if last is None:
            return format_fare_code(1)

        number = parse_fare_number(last.fare_code) + 1
        if number > MAX_FARE_NUMBER:
            raise CodeSequenceExhaustedError(
                "Fare code sequence exhausted",
                {"last_code": last.fare_code, "max_code": format_fare_code(MAX_FARE_NUMBER)},
            )
        return format_fare_code(number)
