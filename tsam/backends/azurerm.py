"""
Azure backend.

Reads state blobs from an Azure Storage container. The default workspace
is the blob named `key`; any other workspace is `<key>env:<workspace>`.

Authentication uses a storage account access key or a SAS token, taken
from the block or, like terraform, from ARM_ACCESS_KEY / ARM_SAS_TOKEN.
"""

import logging
import os
from typing import Any, Dict, List, Optional

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from ..config import DEFAULT_STATE
from ..core.errors import BackendError
from ..security import InputSanitizer
from .base import Backend, Workspace

logger = logging.getLogger(__name__)

WORKSPACE_KEY_SEPARATOR = "env:"

STORAGE_SUFFIXES = {
    "public": "core.windows.net",
    "china": "core.chinacloudapi.cn",
    "usgovernment": "core.usgovcloudapi.net",
    "german": "core.cloudapi.de",
}


class AzureWorkspace(Workspace):

    def __init__(self, name: str, container: Any, blob_name: str):
        super().__init__(name)
        self._container = container
        self.blob_name = blob_name

    def fetch(self) -> Optional[bytes]:
        blob = self._container.get_blob_client(self.blob_name)
        try:
            return blob.download_blob().readall()
        except ResourceNotFoundError:
            logger.info(f"No state blob named {self.blob_name}")
            return None


class AzureBackend(Backend):
    type_name = "azurerm"
    REQUIRED_KEYS = ("storage_account_name", "container_name", "key")
    OPTIONAL_KEYS = (
        "access_key",
        "sas_token",
        "resource_group_name",
        "environment",
        "endpoint",
        "snapshot",
        "subscription_id",
        "tenant_id",
    )
    KEY_TYPES = {"snapshot": (bool, str)}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._container = None

    def validate(self, raw_config: Dict[str, Any]) -> List[str]:
        errors = super().validate(raw_config)
        environment = raw_config.get("environment")
        if environment and isinstance(environment, str) \
                and environment not in STORAGE_SUFFIXES:
            errors.append(f'"environment": unknown Azure environment "{environment}"')
        return errors

    @property
    def account_url(self) -> str:
        account = self.config["storage_account_name"]
        suffix = self.config.get("endpoint") or STORAGE_SUFFIXES[
            self.config.get("environment") or "public"
        ]
        return f"https://{account}.blob.{suffix}"

    def _credential(self) -> str:
        credential = (
            self.config.get("access_key")
            or os.environ.get("ARM_ACCESS_KEY")
            or self.config.get("sas_token")
            or os.environ.get("ARM_SAS_TOKEN")
        )
        if not credential:
            raise BackendError(
                f"No access key or SAS token for storage account "
                f"'{self.config['storage_account_name']}'."
            )
        return credential

    def configure(self, raw_config: Dict[str, Any]) -> None:
        super().configure(raw_config)
        service = BlobServiceClient(account_url=self.account_url, credential=self._credential())
        self._container = service.get_container_client(self.config["container_name"])

    def blob_name(self, name: str) -> str:
        key = self.config["key"]
        if name == DEFAULT_STATE:
            return key
        InputSanitizer.sanitize_workspace_name(name)
        return f"{key}{WORKSPACE_KEY_SEPARATOR}{name}"

    def open_workspace(self, name: str) -> AzureWorkspace:
        blob_name = self.blob_name(name)
        logger.info(
            f"Opening workspace '{name}' at {self.account_url}/"
            f"{self.config['container_name']}/{blob_name}"
        )
        return AzureWorkspace(name, self._container, blob_name)
