from .auth import Credential, create_token, exchange_token
from .client import DEFAULT_CONCURRENCY, TOKEN_REFRESH_MARGIN, GCSSession, SessionConfig, create_session
from .errors import ConfigurationError, GCSError, RemoteOperationError, SigningError
from .ops import (
    GCSObjectParams,
    gcs_bucket_info,
    gcs_delete_object,
    gcs_download,
    gcs_list_objects,
    gcs_object_info,
    gcs_update_bucket,
    gcs_upload,
    gcs_upload_file,
)
from .types import GCSBucket, GCSObject

__all__ = [
    "GCSSession",
    "SessionConfig",
    "create_session",
    "DEFAULT_CONCURRENCY",
    "TOKEN_REFRESH_MARGIN",
    # Credentials
    "Credential",
    "create_token",
    "exchange_token",
    # Errors
    "ConfigurationError",
    "GCSError",
    "RemoteOperationError",
    "SigningError",
    # Operations
    "GCSObjectParams",
    "gcs_bucket_info",
    "gcs_delete_object",
    "gcs_download",
    "gcs_list_objects",
    "gcs_object_info",
    "gcs_update_bucket",
    "gcs_upload",
    "gcs_upload_file",
    # Types
    "GCSBucket",
    "GCSObject",
]
