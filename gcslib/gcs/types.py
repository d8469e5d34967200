from typing import Any, NotRequired, TypedDict


class GCSObject(TypedDict):
    """Storage object resource."""

    kind: str
    id: str
    name: str
    bucket: str
    selfLink: NotRequired[str]
    mediaLink: NotRequired[str]
    generation: NotRequired[str]
    metageneration: NotRequired[str]
    contentType: NotRequired[str]
    storageClass: NotRequired[str]
    size: NotRequired[str]
    md5Hash: NotRequired[str]
    cacheControl: NotRequired[str]
    crc32c: NotRequired[str]
    etag: NotRequired[str]
    timeCreated: NotRequired[str]
    updated: NotRequired[str]
    timeStorageClassUpdated: NotRequired[str]
    metadata: NotRequired[dict[str, str]]


class GCSBucket(TypedDict):
    """Storage bucket resource."""

    kind: str
    id: str
    name: str
    selfLink: NotRequired[str]
    projectNumber: NotRequired[str]
    metageneration: NotRequired[str]
    location: NotRequired[str]
    locationType: NotRequired[str]
    storageClass: NotRequired[str]
    etag: NotRequired[str]
    timeCreated: NotRequired[str]
    updated: NotRequired[str]
    labels: NotRequired[dict[str, str]]
    versioning: NotRequired[dict[str, Any]]
    cors: NotRequired[list[dict[str, Any]]]
    iamConfiguration: NotRequired[dict[str, Any]]
