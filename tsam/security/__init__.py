"""
Security module for tsam.

This module provides input validation and redaction of backend credentials.
"""

from .sanitizer import InputSanitizer, SecurityError
from .secure_memory import OutputRedactor

__all__ = ["InputSanitizer", "SecurityError", "OutputRedactor"]
