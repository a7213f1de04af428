"""
Terraform backends.

Each backend reads one workspace's state from its storage medium:
- local: state files on disk
- inmem: process-wide in-memory store
- s3: objects in an S3 bucket
- gcs: objects in a Google Cloud Storage bucket
- azurerm: blobs in an Azure Storage container
- http: a REST endpoint
- consul: Consul KV
- remote: Terraform Cloud / Enterprise
"""

from .base import Backend, Workspace
from .registry import BACKENDS, configure_backend, fetch_snapshot, get_backend

__all__ = [
    "Backend",
    "Workspace",
    "BACKENDS",
    "configure_backend",
    "fetch_snapshot",
    "get_backend",
]
