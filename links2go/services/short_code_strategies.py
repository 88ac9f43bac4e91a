"""
Short code generation strategies for Links2Go.
Uses Strategy Pattern to allow different generation algorithms.
"""

import secrets
import string
from abc import ABC, abstractmethod


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""

    @abstractmethod
    def generate(self) -> str:
        """
        Propose a candidate short code.

        Uniqueness is not checked here: the record store rejects a code
        that is already taken and the service retries.
        """
        pass

    @abstractmethod
    def is_valid_format(self, code: str) -> bool:
        """Return True if ``code`` could have been produced by this strategy"""
        pass


class RandomShortCodeStrategy(ShortCodeStrategy):
    """
    Fixed-length random codes over a fixed alphabet.

    Characters are drawn independently and uniformly with ``secrets``, so
    codes are unpredictable. With the default 62-character alphabet and
    length 6 the keyspace is 62**6 (about 5.68e10) codes.
    """

    DEFAULT_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits

    def __init__(self, length: int = 6, alphabet: str = DEFAULT_ALPHABET):
        if length < 1:
            raise ValueError(f"Short code length must be positive, got {length}")
        if not alphabet:
            raise ValueError("Short code alphabet must not be empty")
        if len(set(alphabet)) != len(alphabet):
            raise ValueError("Short code alphabet must not contain duplicate characters")

        self.length = length
        self.alphabet = alphabet
        self._allowed = frozenset(alphabet)

    @property
    def keyspace_size(self) -> int:
        return len(self.alphabet) ** self.length

    def generate(self) -> str:
        return ''.join(secrets.choice(self.alphabet) for _ in range(self.length))

    def is_valid_format(self, code: str) -> bool:
        """
        Check length and alphabet only.

        Used to validate custom codes and to reject garbage before any
        store round trip.
        """
        if not isinstance(code, str) or len(code) != self.length:
            return False
        return all(char in self._allowed for char in code)
