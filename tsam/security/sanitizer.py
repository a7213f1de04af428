"""
Input sanitization and validation for tsam.

Workspace names end up in file paths (local backend) and storage keys
(s3, consul), so they are validated before use.
"""

import os
import re


class SecurityError(Exception):
    """Raised when a security validation fails."""
    pass


class InputSanitizer:
    """
    Provides input validation methods.

    All methods raise SecurityError if validation fails.
    """

    # Letters, digits, hyphens, underscores, dots
    WORKSPACE_NAME_PATTERN = re.compile(r'^[a-zA-Z0-9_.-]+$')
    MAX_WORKSPACE_NAME_LENGTH = 90    # Terraform limit

    @staticmethod
    def sanitize_workspace_name(name: str) -> str:
        """
        Validate Terraform workspace name.

        Rules:
        - Cannot be empty
        - Max length: 90 characters (Terraform limit)
        - Letters, digits, hyphens, underscores, dots only
        - Cannot be "." or ".."

        Args:
            name: Workspace name to validate

        Returns:
            Validated workspace name (unchanged if valid)

        Raises:
            SecurityError: If name is invalid
        """
        if not name:
            raise SecurityError("Workspace name cannot be empty")

        if len(name) > InputSanitizer.MAX_WORKSPACE_NAME_LENGTH:
            raise SecurityError(
                f"Workspace name too long (max {InputSanitizer.MAX_WORKSPACE_NAME_LENGTH})"
            )

        if name in (".", ".."):
            raise SecurityError(f"Invalid workspace name '{name}'")

        if not InputSanitizer.WORKSPACE_NAME_PATTERN.match(name):
            raise SecurityError(
                f"Invalid workspace name '{name}': only alphanumeric, hyphens, "
                "underscores, dots allowed"
            )

        return name

    @staticmethod
    def sanitize_path(path: str, base_dir: str) -> str:
        """
        Resolve a path and check it stays inside base_dir.

        Args:
            path: Path to validate; relative paths resolve against base_dir
            base_dir: Directory the path must not escape

        Returns:
            Normalized absolute path

        Raises:
            SecurityError: If path is empty or escapes base_dir
        """
        if not path:
            raise SecurityError("Path cannot be empty")

        base = os.path.realpath(os.path.expanduser(base_dir))
        try:
            abs_path = os.path.realpath(os.path.join(base, os.path.expanduser(path)))
        except (OSError, ValueError) as e:
            raise SecurityError(f"Invalid path: {e}")

        if abs_path != base and not abs_path.startswith(base + os.sep):
            raise SecurityError(f"Path escapes {base_dir}: {path}")

        return abs_path
