"""
Consul backend.

State is a value in Consul's KV store, read over the HTTP API. The
default workspace lives at `path`, others at `<path>-env:<name>`.
"""

import gzip
import logging
from typing import Optional

import requests

from ..config import DEFAULT_STATE
from ..core.errors import BackendError
from ..security import InputSanitizer
from .base import Backend, Workspace

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = "127.0.0.1:8500"
WORKSPACE_KEY_SEPARATOR = "-env:"

_GZIP_MAGIC = b"\x1f\x8b"


class ConsulWorkspace(Workspace):

    def __init__(self, name: str, backend: "ConsulBackend", key: str):
        super().__init__(name)
        self._backend = backend
        self.key = key

    def fetch(self) -> Optional[bytes]:
        backend = self._backend
        params = {"raw": ""}
        if backend.config.get("datacenter"):
            params["dc"] = backend.config["datacenter"]

        response = backend.session.get(
            f"{backend.base_url}/v1/kv/{self.key}",
            params=params,
            timeout=backend.timeout,
        )
        if response.status_code == 404:
            logger.info(f"No state at consul key {self.key}")
            return None
        if response.status_code != 200:
            raise BackendError(
                f"Consul KV read of '{self.key}' returned {response.status_code}"
            )

        data = response.content
        if data.startswith(_GZIP_MAGIC):
            data = gzip.decompress(data)
        return data


class ConsulBackend(Backend):
    type_name = "consul"
    REQUIRED_KEYS = ("path",)
    OPTIONAL_KEYS = (
        "address",
        "scheme",
        "access_token",
        "datacenter",
        "gzip",
        "lock",
        "http_auth",
        "ca_file",
        "cert_file",
        "key_file",
    )
    KEY_TYPES = {"gzip": (bool, str), "lock": (bool, str)}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.session: Optional[requests.Session] = None

    @property
    def base_url(self) -> str:
        scheme = self.config.get("scheme") or "http"
        address = self.config.get("address") or DEFAULT_ADDRESS
        return f"{scheme}://{address}"

    def configure(self, raw_config):
        super().configure(raw_config)
        self.session = requests.Session()
        if self.config.get("access_token"):
            self.session.headers["X-Consul-Token"] = self.config["access_token"]
        if self.config.get("http_auth"):
            username, _, password = self.config["http_auth"].partition(":")
            self.session.auth = (username, password)
        if self.config.get("ca_file"):
            self.session.verify = self.config["ca_file"]
        if self.config.get("cert_file") and self.config.get("key_file"):
            self.session.cert = (self.config["cert_file"], self.config["key_file"])

    def state_key(self, name: str) -> str:
        path = self.config["path"]
        if name == DEFAULT_STATE:
            return path
        InputSanitizer.sanitize_workspace_name(name)
        return f"{path}{WORKSPACE_KEY_SEPARATOR}{name}"

    def open_workspace(self, name: str) -> ConsulWorkspace:
        return ConsulWorkspace(name, self, self.state_key(name))
