"""
HTTP backend.

State is fetched with a GET on `address`. Only the default workspace
exists for this backend.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..config import DEFAULT_STATE
from ..core.errors import BackendError
from .base import Backend, Workspace

logger = logging.getLogger(__name__)


class HttpWorkspace(Workspace):

    def __init__(self, name: str, session: requests.Session, address: str,
                 verify: bool, timeout: int):
        super().__init__(name)
        self._session = session
        self.address = address
        self.verify = verify
        self.timeout = timeout

    def fetch(self) -> Optional[bytes]:
        response = self._session.get(self.address, verify=self.verify, timeout=self.timeout)
        if response.status_code in (204, 404):
            return None
        if response.status_code != 200:
            raise BackendError(
                f"HTTP remote state endpoint returned {response.status_code}"
            )
        return response.content


class HttpBackend(Backend):
    type_name = "http"
    REQUIRED_KEYS = ("address",)
    OPTIONAL_KEYS = (
        "update_method",
        "lock_address",
        "unlock_address",
        "lock_method",
        "unlock_method",
        "username",
        "password",
        "skip_cert_verification",
        "retry_max",
        "retry_wait_min",
        "retry_wait_max",
    )
    KEY_TYPES = {
        "skip_cert_verification": (bool, str),
        "retry_max": (int, str),
        "retry_wait_min": (int, str),
        "retry_wait_max": (int, str),
    }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._session: Optional[requests.Session] = None

    def validate(self, raw_config: Dict[str, Any]) -> List[str]:
        errors = super().validate(raw_config)
        address = raw_config.get("address")
        if isinstance(address, str) and address \
                and not address.startswith(("http://", "https://")):
            errors.append('"address": must be an http or https URL')
        return errors

    def configure(self, raw_config: Dict[str, Any]) -> None:
        super().configure(raw_config)
        self._session = requests.Session()
        if self.config.get("username"):
            self._session.auth = (self.config["username"], self.config.get("password", ""))

    def open_workspace(self, name: str) -> HttpWorkspace:
        if name != DEFAULT_STATE:
            raise BackendError("Workspaces not supported by the http backend.")
        return HttpWorkspace(
            name,
            self._session,
            self.config["address"],
            verify=not _as_bool(self.config.get("skip_cert_verification", False)),
            timeout=self.timeout,
        )


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() in ("true", "1")
    return bool(value)
