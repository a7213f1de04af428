"""
GCS backend.

Reads state objects from a Google Cloud Storage bucket. Every workspace,
the default one included, is stored as `<prefix>/<workspace>.tfstate`.
"""

import base64
import json
import logging
import os
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import NotFound
from google.cloud import storage
from google.oauth2 import credentials as oauth2_credentials
from google.oauth2 import service_account

from ..config import DEFAULT_STATE
from ..security import InputSanitizer
from .base import Backend, Workspace

logger = logging.getLogger(__name__)

STATE_FILE_SUFFIX = ".tfstate"

# environment fallbacks for `credentials`, in lookup order
CREDENTIALS_ENV_VARS = ("GOOGLE_BACKEND_CREDENTIALS", "GOOGLE_CREDENTIALS")


class GcsWorkspace(Workspace):

    def __init__(self, name: str, bucket: Any, object_name: str,
                 encryption_key: Optional[bytes] = None):
        super().__init__(name)
        self._bucket = bucket
        self.object_name = object_name
        self.encryption_key = encryption_key

    def fetch(self) -> Optional[bytes]:
        blob = self._bucket.blob(self.object_name, encryption_key=self.encryption_key)
        try:
            return blob.download_as_bytes()
        except NotFound:
            logger.info(f"No state object at gs://{self._bucket.name}/{self.object_name}")
            return None


class GcsBackend(Backend):
    type_name = "gcs"
    REQUIRED_KEYS = ("bucket",)
    OPTIONAL_KEYS = (
        "prefix",
        "credentials",
        "access_token",
        "encryption_key",
        "project",
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._bucket = None

    def validate(self, raw_config: Dict[str, Any]) -> List[str]:
        errors = super().validate(raw_config)
        prefix = raw_config.get("prefix")
        if isinstance(prefix, str) and prefix.startswith("/"):
            errors.append('"prefix": must not start with "/"')
        return errors

    def _credentials(self) -> Any:
        """
        Build credentials from the backend block.

        `credentials` is either a path to a service account key file or
        the key's JSON content. Without either, the client falls back to
        application default credentials.
        """
        if self.config.get("access_token"):
            return oauth2_credentials.Credentials(self.config["access_token"])

        creds = self.config.get("credentials")
        if not creds:
            creds = next(
                (os.environ[var] for var in CREDENTIALS_ENV_VARS if os.environ.get(var)),
                None,
            )
        if not creds:
            return None
        if creds.lstrip().startswith("{"):
            return service_account.Credentials.from_service_account_info(json.loads(creds))
        return service_account.Credentials.from_service_account_file(
            os.path.join(self.working_dir, os.path.expanduser(creds))
        )

    def configure(self, raw_config: Dict[str, Any]) -> None:
        super().configure(raw_config)
        client = storage.Client(
            project=self.config.get("project"),
            credentials=self._credentials(),
        )
        self._bucket = client.bucket(self.config["bucket"])

    def object_name(self, name: str) -> str:
        if name != DEFAULT_STATE:
            InputSanitizer.sanitize_workspace_name(name)
        prefix = self.config.get("prefix") or ""
        if prefix and not prefix.endswith("/"):
            prefix += "/"
        return f"{prefix}{name}{STATE_FILE_SUFFIX}"

    def open_workspace(self, name: str) -> GcsWorkspace:
        object_name = self.object_name(name)
        logger.info(f"Opening workspace '{name}' at gs://{self.config['bucket']}/{object_name}")
        encryption_key = self.config.get("encryption_key")
        return GcsWorkspace(
            name,
            self._bucket,
            object_name,
            encryption_key=base64.b64decode(encryption_key) if encryption_key else None,
        )
