from __future__ import annotations

import http
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypedDict, Unpack, cast
from urllib.parse import quote

try:
    import niquests
except ImportError:
    raise ImportError('Please install niquests or gcslib with "gcs" to use this module')

try:
    import ujson as json
except ImportError:
    import json

from .errors import RemoteOperationError

if TYPE_CHECKING:
    from .types import GCSBucket, GCSObject

__all__ = (
    "API_URL",
    "GCSObjectParams",
    "UPLOAD_URL",
    "bucket_url",
    "build_gcs_resource",
    "gcs_bucket_info",
    "gcs_delete_object",
    "gcs_download",
    "gcs_list_objects",
    "gcs_object_info",
    "gcs_update_bucket",
    "gcs_upload",
    "gcs_upload_file",
    "object_url",
)

logger = logging.getLogger("gcslib")

API_URL = "https://storage.googleapis.com/storage/v1"
UPLOAD_URL = "https://storage.googleapis.com/upload/storage/v1"


class GCSObjectParams(TypedDict, total=False):
    """
    Optional parameters for object uploads.

    See: https://cloud.google.com/storage/docs/json_api/v1/objects/insert
    """

    published: bool  # predefinedAcl=publicRead
    metadata: dict[str, Any] | None  # User-defined metadata
    content_type: str | None
    cache_control: str | None


def build_gcs_resource(params: GCSObjectParams) -> dict[str, Any]:
    """Build the JSON metadata part sent along an upload."""
    resource: dict[str, Any] = {"metadata": params.get("metadata")}
    if (content_type := params.get("content_type")) is not None:
        resource["contentType"] = content_type
    if (cache_control := params.get("cache_control")) is not None:
        resource["cacheControl"] = cache_control
    return resource


def bucket_url(bucket: str, *, base_url: str = API_URL) -> str:
    return f"{base_url}/b/{quote(bucket, safe='')}"


def object_url(bucket: str, name: str, *, base_url: str = API_URL) -> str:
    return f"{bucket_url(bucket, base_url=base_url)}/o/{quote(name, safe='')}"


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _check_status(resp: niquests.Response, expected: int = http.HTTPStatus.OK) -> niquests.Response:
    if resp.status_code != expected:
        reason = resp.reason or str(resp.status_code)
        logger.warning(f"Storage API answered {resp.status_code} ({reason}), expected {int(expected)}")
        raise RemoteOperationError(reason, status_code=resp.status_code)
    return resp


def _load_json(resp: niquests.Response) -> Any:
    return json.loads(resp.content) if resp.content else {}


async def gcs_object_info(
    client: niquests.AsyncSession, token: str, bucket: str, name: str, *, base_url: str = API_URL
) -> GCSObject:
    """Fetch the metadata of an object."""
    resp = await client.get(object_url(bucket, name, base_url=base_url), headers=_auth_headers(token))
    return cast("GCSObject", _load_json(_check_status(resp)))


async def gcs_download(
    client: niquests.AsyncSession, token: str, bucket: str, name: str, *, base_url: str = API_URL
) -> bytes:
    """Download the content of an object, bypassing intermediate caches."""
    params = {"alt": "media", "no": str(int(time.time() * 1000))}
    resp = await client.get(object_url(bucket, name, base_url=base_url), params=params, headers=_auth_headers(token))
    return _check_status(resp).content or b""


async def gcs_upload(
    client: niquests.AsyncSession,
    token: str,
    bucket: str,
    name: str,
    data: bytes,
    *,
    upload_url: str = UPLOAD_URL,
    **kwargs: Unpack[GCSObjectParams],
) -> GCSObject:
    """
    Upload an object with a multipart request (JSON metadata part, then the content).

    See: https://cloud.google.com/storage/docs/uploading-objects#uploading-an-object
    """
    obj_params: GCSObjectParams = kwargs
    params = {"name": name, "uploadType": "multipart"}
    if obj_params.get("published"):
        params["predefinedAcl"] = "publicRead"
    resource = json.dumps(build_gcs_resource(obj_params)).encode("utf-8")
    content_type = obj_params.get("content_type") or "application/octet-stream"
    files = [
        ("metadata", (None, resource, "application/json")),
        ("file", (None, data, content_type)),
    ]
    resp = await client.post(
        f"{bucket_url(bucket, base_url=upload_url)}/o", params=params, files=files, headers=_auth_headers(token)
    )
    return cast("GCSObject", _load_json(_check_status(resp)))


async def gcs_upload_file(
    client: niquests.AsyncSession,
    token: str,
    bucket: str,
    file: Path,
    name: str,
    *,
    upload_url: str = UPLOAD_URL,
    **kwargs: Unpack[GCSObjectParams],
) -> GCSObject:
    """
    Upload a local file.
    This is a convenience wrapper around gcs_upload that reads the file content.
    """
    return await gcs_upload(client, token, bucket, name, file.read_bytes(), upload_url=upload_url, **kwargs)


async def gcs_delete_object(
    client: niquests.AsyncSession, token: str, bucket: str, name: str, *, base_url: str = API_URL
) -> bool:
    """Delete an object. The API answers 204 on success."""
    resp = await client.delete(object_url(bucket, name, base_url=base_url), headers=_auth_headers(token))
    _check_status(resp, http.HTTPStatus.NO_CONTENT)
    return True


async def gcs_list_objects(
    client: niquests.AsyncSession, token: str, bucket: str, *, base_url: str = API_URL
) -> list[GCSObject]:
    """List the objects of a bucket (first page only)."""
    resp = await client.get(f"{bucket_url(bucket, base_url=base_url)}/o", headers=_auth_headers(token))
    return cast("list[GCSObject]", _load_json(_check_status(resp)).get("items", []))


async def gcs_bucket_info(
    client: niquests.AsyncSession, token: str, bucket: str, *, base_url: str = API_URL
) -> GCSBucket:
    """Fetch the metadata of a bucket."""
    resp = await client.get(bucket_url(bucket, base_url=base_url), headers=_auth_headers(token))
    return cast("GCSBucket", _load_json(_check_status(resp)))


async def gcs_update_bucket(
    client: niquests.AsyncSession, token: str, bucket: str, data: dict[str, Any], *, base_url: str = API_URL
) -> GCSBucket:
    """
    Patch the metadata of a bucket.

    Only the provided fields are updated; omitted fields remain unchanged.
    """
    resp = await client.patch(bucket_url(bucket, base_url=base_url), json=data, headers=_auth_headers(token))
    return cast("GCSBucket", _load_json(_check_status(resp)))
