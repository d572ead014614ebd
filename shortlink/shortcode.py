"""Short code generation utilities."""

import secrets
import string
from typing import Optional


class ShortCodeGenerator:
    """Generate random short codes for URL mappings."""

    # Base62 characters (alphanumeric, case-sensitive)
    BASE62_CHARS = string.ascii_letters + string.digits  # a-zA-Z0-9

    MIN_LENGTH = 6
    MAX_LENGTH = 8

    def __init__(self, default_length: int = 7):
        """Initialize short code generator.

        Args:
            default_length: Default length for generated codes (6-8)

        Raises:
            ValueError: If the length is outside the allowed range
        """
        self._check_length(default_length)
        self.default_length = default_length

    def generate(self, length: Optional[int] = None) -> str:
        """Generate a random short code.

        Each character is drawn independently from the system CSPRNG, so
        concurrent callers never see correlated sequences.

        Args:
            length: Length of the code (uses default if not specified)

        Returns:
            Random short code
        """
        length = self.default_length if length is None else length
        self._check_length(length)
        return ''.join(secrets.choice(self.BASE62_CHARS) for _ in range(length))

    def keyspace(self, length: Optional[int] = None) -> int:
        """Number of distinct codes of the given length."""
        return len(self.BASE62_CHARS) ** (self.default_length if length is None else length)

    def _check_length(self, length: int) -> None:
        if not self.MIN_LENGTH <= length <= self.MAX_LENGTH:
            raise ValueError(
                f"Short code length must be between {self.MIN_LENGTH} "
                f"and {self.MAX_LENGTH}, got {length}"
            )

    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check if code has valid format (6-8 alphanumeric characters).

        Args:
            code: Code to validate

        Returns:
            True if valid format
        """
        return (
            ShortCodeGenerator.MIN_LENGTH <= len(code) <= ShortCodeGenerator.MAX_LENGTH
            and all(c in ShortCodeGenerator.BASE62_CHARS for c in code)
        )
