"""
In-memory backend.

States are kept in a process-wide store keyed by workspace name. Used to
run the retrieval pipeline without any storage behind it.
"""

import json
from typing import Any, Dict, Optional, Union

from .base import Backend, Workspace

_STATES: Dict[str, bytes] = {}


class InmemWorkspace(Workspace):

    def fetch(self) -> Optional[bytes]:
        return _STATES.get(self.name)


class InmemBackend(Backend):
    type_name = "inmem"
    OPTIONAL_KEYS = ("lock_id",)

    @staticmethod
    def put_state(name: str, document: Union[Dict[str, Any], bytes]) -> None:
        """Store a state document (dict or raw JSON bytes) for a workspace."""
        if isinstance(document, dict):
            document = json.dumps(document).encode("utf-8")
        _STATES[name] = document

    @staticmethod
    def reset() -> None:
        _STATES.clear()

    def open_workspace(self, name: str) -> InmemWorkspace:
        return InmemWorkspace(name)
