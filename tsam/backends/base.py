"""
Backend and workspace capabilities.

A Backend is validated and configured from the raw attributes of the
`backend` block, then opens named workspaces. A Workspace fetches the
raw state document on refresh() and exposes it as decoded modules.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from ..config import Settings
from ..core.state import StateModule, decode_state_bytes

logger = logging.getLogger(__name__)


class Workspace(ABC):
    """One named workspace of a backend."""

    def __init__(self, name: str):
        self.name = name
        self._modules: List[StateModule] = []

    @abstractmethod
    def fetch(self) -> Optional[bytes]:
        """
        Read the stored state document.

        Returns:
            Raw state bytes, or None if the workspace has no state yet
        """
        pass

    def refresh(self) -> None:
        """Fetch the latest state and decode it."""
        self._modules = decode_state_bytes(self.fetch())
        logger.info(f"Refreshed workspace '{self.name}': {len(self._modules)} modules")

    def modules(self) -> List[StateModule]:
        """Modules of the last refreshed state; empty before refresh()."""
        return self._modules


class Backend(ABC):
    """
    Abstract Terraform backend.

    Subclasses list the attributes they accept in REQUIRED_KEYS and
    OPTIONAL_KEYS; validate() reports anything missing, unknown or of the
    wrong type. Attributes are strings unless KEY_TYPES says otherwise.
    """

    type_name = ""
    REQUIRED_KEYS: Tuple[str, ...] = ()
    OPTIONAL_KEYS: Tuple[str, ...] = ()
    KEY_TYPES: Dict[str, Tuple[type, ...]] = {}

    def __init__(self, settings: Optional[Settings] = None, working_dir: Optional[str] = None):
        """
        Args:
            settings: Tool settings (timeouts, local layout)
            working_dir: Directory relative paths in the backend block resolve against
        """
        self.settings = settings or Settings()
        self.working_dir = working_dir or os.getcwd()
        self.config: Dict[str, Any] = {}

    def validate(self, raw_config: Dict[str, Any]) -> List[str]:
        """
        Check the backend block attributes.

        Returns:
            List of problems; empty when the configuration is usable
        """
        errors = []
        for key in self.REQUIRED_KEYS:
            if raw_config.get(key) in (None, ""):
                errors.append(f'"{key}": required field is not set')
        allowed = set(self.REQUIRED_KEYS) | set(self.OPTIONAL_KEYS)
        for key in sorted(raw_config):
            if key not in allowed:
                errors.append(f'"{key}": unsupported argument for {self.type_name} backend')
                continue
            expected = self.KEY_TYPES.get(key, (str,))
            value = raw_config[key]
            if value is not None and not isinstance(value, expected):
                names = " or ".join(t.__name__ for t in expected)
                errors.append(f'"{key}": expected {names}, got {type(value).__name__}')
        return errors

    def configure(self, raw_config: Dict[str, Any]) -> None:
        """Store the configuration; subclasses prepare clients here."""
        self.config = dict(raw_config)

    @abstractmethod
    def open_workspace(self, name: str) -> Workspace:
        """Return a handle for the named workspace."""
        pass

    @property
    def timeout(self) -> int:
        return self.settings.get("http.timeout", 30)
