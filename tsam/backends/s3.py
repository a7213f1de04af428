"""
S3 backend.

Reads state objects with boto3. Non-default workspaces are stored under
`<workspace_key_prefix>/<workspace>/<key>`.
"""

import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError

from ..config import DEFAULT_STATE
from ..security import InputSanitizer
from .base import Backend, Workspace

logger = logging.getLogger(__name__)

DEFAULT_WORKSPACE_KEY_PREFIX = "env:"

_MISSING_OBJECT_CODES = ("NoSuchKey", "NoSuchBucket", "404")


class S3Workspace(Workspace):

    def __init__(self, name: str, client: Any, bucket: str, key: str):
        super().__init__(name)
        self._client = client
        self.bucket = bucket
        self.key = key

    def fetch(self) -> Optional[bytes]:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=self.key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in _MISSING_OBJECT_CODES:
                logger.info(f"No state object at s3://{self.bucket}/{self.key}")
                return None
            raise
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()


class S3Backend(Backend):
    type_name = "s3"
    REQUIRED_KEYS = ("bucket", "key")
    OPTIONAL_KEYS = (
        "region",
        "profile",
        "endpoint",
        "access_key",
        "secret_key",
        "token",
        "encrypt",
        "acl",
        "kms_key_id",
        "dynamodb_table",
        "workspace_key_prefix",
    )
    KEY_TYPES = {"encrypt": (bool, str)}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._client = None

    def validate(self, raw_config: Dict[str, Any]) -> List[str]:
        errors = super().validate(raw_config)
        key = raw_config.get("key")
        if isinstance(key, str) and (key.startswith("/") or key.endswith("/")):
            errors.append('"key": must not start or end with "/"')
        return errors

    def configure(self, raw_config: Dict[str, Any]) -> None:
        super().configure(raw_config)
        session = boto3.session.Session(
            profile_name=self.config.get("profile"),
            region_name=self.config.get("region"),
            aws_access_key_id=self.config.get("access_key"),
            aws_secret_access_key=self.config.get("secret_key"),
            aws_session_token=self.config.get("token"),
        )
        self._client = session.client("s3", endpoint_url=self.config.get("endpoint"))

    def state_key(self, name: str) -> str:
        key = self.config["key"]
        if name == DEFAULT_STATE:
            return key
        InputSanitizer.sanitize_workspace_name(name)
        prefix = self.config.get("workspace_key_prefix", DEFAULT_WORKSPACE_KEY_PREFIX)
        return f"{prefix}/{name}/{key}"

    def open_workspace(self, name: str) -> S3Workspace:
        key = self.state_key(name)
        logger.info(f"Opening workspace '{name}' at s3://{self.config['bucket']}/{key}")
        return S3Workspace(name, self._client, self.config["bucket"], key)
