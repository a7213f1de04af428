"""
Redaction of sensitive backend settings.

Backend blocks may carry credentials (tokens, passwords, secret keys).
Those values never reach logs or error messages verbatim.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

REDACTED = "[REDACTED]"

# a match must not continue a word on either side
_NOT_WORD_BEFORE = r"(?<![\w-])"
_NOT_WORD_AFTER = r"(?![\w-])"

SENSITIVE_CONFIG_KEYS = frozenset({
    "access_key",
    "access_token",
    "client_secret",
    "credentials",
    "encryption_key",
    "password",
    "sas_token",
    "secret_key",
    "security_token",
    "token",
})


class OutputRedactor:
    """
    Redacts sensitive values from text output.

    Example:
        >>> redactor = OutputRedactor.from_config({"bucket": "b", "secret_key": "s3cr3t"})
        >>> redactor.redact("auth failed for s3cr3t")
        'auth failed for [REDACTED]'
    """

    def __init__(self, sensitive_values: Optional[Iterable[str]] = None):
        """
        Initialize redactor with sensitive values.

        Args:
            sensitive_values: Exact strings to hide
        """
        self.sensitive_values: List[str] = []

        if sensitive_values:
            self.add_sensitive_values(sensitive_values)

    @classmethod
    def from_config(cls, raw_config: Dict[str, Any]) -> "OutputRedactor":
        """Collect the values of sensitive keys in a backend configuration."""
        return cls([
            str(value)
            for key, value in raw_config.items()
            if key in SENSITIVE_CONFIG_KEYS and value
        ])

    def add_sensitive_values(self, values: Iterable[str]):
        for value in values:
            if value and value not in self.sensitive_values:
                self.sensitive_values.append(value)

    def redact(self, text: str) -> str:
        """
        Replace any occurrence of sensitive values with [REDACTED].

        Matching is exact and case-sensitive, but a value is only replaced
        where it is not part of a longer word, so a short secret such as
        "t" leaves "exactly" alone.

        Args:
            text: Text to redact

        Returns:
            Text with sensitive values replaced by [REDACTED]
        """
        if not text or not self.sensitive_values:
            return text

        # Longest first, so a value containing another is hidden whole
        values = sorted(self.sensitive_values, key=len, reverse=True)
        alternatives = "|".join(re.escape(v) for v in values)
        pattern = re.compile(f"{_NOT_WORD_BEFORE}(?:{alternatives}){_NOT_WORD_AFTER}")
        return pattern.sub(REDACTED, text)

    @staticmethod
    def redact_config(raw_config: Dict[str, Any]) -> Dict[str, Any]:
        """Copy of raw_config with sensitive values masked, for logging."""
        return {
            key: REDACTED if key in SENSITIVE_CONFIG_KEYS and value else value
            for key, value in raw_config.items()
        }
