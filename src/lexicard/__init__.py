"""lexicard: spaced-repetition vocabulary trainer."""

from lexicard.consts import VERSION

__version__ = VERSION
