"""
Remote backend (Terraform Cloud / Terraform Enterprise).

Uses the v2 API: resolve the workspace id, look up its current state
version and download the hosted state document.

The API token comes from the `token` attribute or, like the terraform
CLI, from TF_TOKEN_<hostname with dots as underscores>.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import requests

from ..config import DEFAULT_STATE
from ..core.errors import BackendError
from ..security import InputSanitizer
from .base import Backend, Workspace

logger = logging.getLogger(__name__)

DEFAULT_HOSTNAME = "app.terraform.io"


def token_env_var(hostname: str) -> str:
    return "TF_TOKEN_" + hostname.replace(".", "_").replace("-", "__")


class RemoteWorkspace(Workspace):

    def __init__(self, name: str, backend: "RemoteBackend", remote_name: str):
        super().__init__(name)
        self._backend = backend
        self.remote_name = remote_name

    def fetch(self) -> Optional[bytes]:
        backend = self._backend
        org = backend.config["organization"]

        workspace = backend.get_json(
            f"/organizations/{org}/workspaces/{self.remote_name}"
        )
        if workspace is None:
            raise BackendError(
                f"Workspace '{self.remote_name}' not found in organization '{org}'."
            )

        state_version = backend.get_json(
            f"/workspaces/{workspace['data']['id']}/current-state-version"
        )
        if state_version is None:
            logger.info(f"Workspace '{self.remote_name}' has no state yet")
            return None

        download_url = state_version["data"]["attributes"]["hosted-state-download-url"]
        response = backend.session.get(download_url, timeout=backend.timeout)
        response.raise_for_status()
        return response.content


class RemoteBackend(Backend):
    type_name = "remote"
    REQUIRED_KEYS = ("organization", "workspaces")
    OPTIONAL_KEYS = ("hostname", "token")
    KEY_TYPES = {"workspaces": (dict, list)}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.session: Optional[requests.Session] = None

    @staticmethod
    def _workspaces_block(raw_config: Dict[str, Any]) -> Dict[str, Any]:
        block = raw_config.get("workspaces") or {}
        if isinstance(block, list):
            block = block[0] if block else {}
        return block if isinstance(block, dict) else {}

    def validate(self, raw_config: Dict[str, Any]) -> List[str]:
        errors = super().validate(raw_config)
        workspaces = raw_config.get("workspaces")
        if not isinstance(workspaces, (dict, list)):
            return errors
        if isinstance(workspaces, list) and (
            len(workspaces) != 1 or not isinstance(workspaces[0], dict)
        ):
            errors.append('"workspaces": expected a single block')
            return errors

        block = self._workspaces_block(raw_config)
        for key in ("name", "prefix"):
            if block.get(key) is not None and not isinstance(block[key], str):
                errors.append(f'"workspaces.{key}": expected str')
        if bool(block.get("name")) == bool(block.get("prefix")):
            errors.append('"workspaces": exactly one of "name" or "prefix" must be set')
        return errors

    @property
    def hostname(self) -> str:
        return self.config.get("hostname") or DEFAULT_HOSTNAME

    def configure(self, raw_config: Dict[str, Any]) -> None:
        super().configure(raw_config)
        token = self.config.get("token") or os.environ.get(token_env_var(self.hostname))
        if not token:
            raise BackendError(f"No API token for {self.hostname}.")
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/vnd.api+json",
        })

    def get_json(self, endpoint: str) -> Optional[Dict[str, Any]]:
        """GET an API v2 endpoint; None on 404."""
        response = self.session.get(
            f"https://{self.hostname}/api/v2{endpoint}",
            timeout=self.timeout,
        )
        if response.status_code == 404:
            return None
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise BackendError(f"Remote API request failed: {e}") from e
        return response.json()

    def remote_workspace_name(self, name: str) -> str:
        block = self._workspaces_block(self.config)
        if block.get("name"):
            if name != DEFAULT_STATE:
                raise BackendError(
                    "Only the default workspace is available when workspaces.name is set."
                )
            return block["name"]
        if name == DEFAULT_STATE:
            raise BackendError(
                "The default workspace is not available when workspaces.prefix is set."
            )
        InputSanitizer.sanitize_workspace_name(name)
        return block["prefix"] + name

    def open_workspace(self, name: str) -> RemoteWorkspace:
        return RemoteWorkspace(name, self, self.remote_workspace_name(name))
