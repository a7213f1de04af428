"""
Backend selection and state retrieval.

Maps a backend type label to its implementation, configures it from the
raw backend block and fetches one workspace as a StateSnapshot. Every
failure past selection is reported as
"Error while configuring Terraform backend: '<reason>'.", with backend
credentials redacted from the reason.
"""

import logging
from typing import Any, Dict, Optional, Type

from ..config import Settings
from ..core.errors import BackendError
from ..core.state import StateSnapshot
from ..security import OutputRedactor
from .base import Backend
from .azurerm import AzureBackend
from .consul import ConsulBackend
from .gcs import GcsBackend
from .http import HttpBackend
from .inmem import InmemBackend
from .local import LocalBackend
from .remote import RemoteBackend
from .s3 import S3Backend

logger = logging.getLogger(__name__)

BACKENDS: Dict[str, Type[Backend]] = {
    "azure": AzureBackend,
    "azurerm": AzureBackend,
    "consul": ConsulBackend,
    "gcs": GcsBackend,
    "http": HttpBackend,
    "inmem": InmemBackend,
    "local": LocalBackend,
    "remote": RemoteBackend,
    "s3": S3Backend,
}


def _backend_error(reason: Any, redactor: OutputRedactor) -> BackendError:
    return BackendError(
        f"Error while configuring Terraform backend: '{redactor.redact(str(reason))}'."
    )


def get_backend(
    backend_type: str,
    settings: Optional[Settings] = None,
    working_dir: Optional[str] = None,
) -> Backend:
    """
    Instantiate the backend registered for backend_type.

    Raises:
        BackendError: If the type is not registered
    """
    backend_cls = BACKENDS.get(backend_type)
    if backend_cls is None:
        raise BackendError(f"Unknown remote-backend type '{backend_type}'.")
    return backend_cls(settings=settings, working_dir=working_dir)


def configure_backend(backend: Backend, raw_config: Dict[str, Any]) -> Backend:
    """
    Validate and configure a backend.

    Raises:
        BackendError: If validation reports problems or configure fails
    """
    redactor = OutputRedactor.from_config(raw_config)
    logger.debug(
        f"Configuring {backend.type_name} backend with "
        f"{OutputRedactor.redact_config(raw_config)}"
    )

    try:
        errors = backend.validate(raw_config)
    except Exception as e:
        raise _backend_error(e, redactor) from e
    if errors:
        raise _backend_error("; ".join(errors), redactor)

    try:
        backend.configure(raw_config)
    except Exception as e:
        raise _backend_error(e, redactor) from e
    return backend


def fetch_snapshot(backend: Backend, workspace_name: str) -> StateSnapshot:
    """
    Open, refresh and index one workspace of a configured backend.

    Raises:
        BackendError: If the workspace cannot be opened or read
    """
    redactor = OutputRedactor.from_config(backend.config)
    try:
        workspace = backend.open_workspace(workspace_name)
        workspace.refresh()
    except Exception as e:
        raise _backend_error(e, redactor) from e
    return StateSnapshot.from_modules(workspace.modules())
