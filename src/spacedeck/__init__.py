"""spacedeck: spaced-repetition scheduling with a deck/folder hierarchy."""

from spacedeck.consts import VERSION

__version__ = VERSION
