"""
Local filesystem backend.

The default workspace lives at `path`; any other workspace at
`<workspace_dir>/<name>/terraform.tfstate`.
"""

import logging
import os
from typing import Optional

from ..config import DEFAULT_STATE
from ..security import InputSanitizer
from .base import Backend, Workspace

logger = logging.getLogger(__name__)

STATE_FILE_NAME = "terraform.tfstate"


class LocalWorkspace(Workspace):
    """Workspace backed by a state file on disk."""

    def __init__(self, name: str, state_path: str):
        super().__init__(name)
        self.state_path = state_path

    def fetch(self) -> Optional[bytes]:
        if not os.path.exists(self.state_path):
            logger.info(f"No state file at {self.state_path}")
            return None
        with open(self.state_path, "rb") as f:
            return f.read()


class LocalBackend(Backend):
    type_name = "local"
    OPTIONAL_KEYS = ("path", "workspace_dir")

    def _resolve(self, path: str) -> str:
        return os.path.join(self.working_dir, os.path.expanduser(path))

    @property
    def state_path(self) -> str:
        return self._resolve(
            self.config.get("path") or self.settings.get("local.default_path", STATE_FILE_NAME)
        )

    @property
    def workspace_dir(self) -> str:
        return self._resolve(
            self.config.get("workspace_dir")
            or self.settings.get("local.workspace_dir", "terraform.tfstate.d")
        )

    def open_workspace(self, name: str) -> LocalWorkspace:
        if name == DEFAULT_STATE:
            return LocalWorkspace(name, self.state_path)

        InputSanitizer.sanitize_workspace_name(name)
        state_path = InputSanitizer.sanitize_path(
            os.path.join(name, STATE_FILE_NAME), self.workspace_dir
        )
        return LocalWorkspace(name, state_path)
