import json

import pytest

from gcslib.tests import MockResponse, MockTransport

TOKEN = "ya29.token"
API = "https://storage.googleapis.com/storage/v1"
UPLOAD = "https://storage.googleapis.com/upload/storage/v1"


@pytest.mark.parametrize(
    ("bucket", "name", "expected"),
    [
        pytest.param("bkt", "a.txt", f"{API}/b/bkt/o/a.txt", id="simple"),
        pytest.param("bkt", "dir/a b.txt", f"{API}/b/bkt/o/dir%2Fa%20b.txt", id="slash_and_space"),
        pytest.param("bkt", "../x?alt=json#f", f"{API}/b/bkt/o/..%2Fx%3Falt%3Djson%23f", id="injection"),
        pytest.param("b/../c", "a", f"{API}/b/b%2F..%2Fc/o/a", id="bucket_encoded"),
    ],
)
def test_object_url(bucket, name, expected):
    from gcslib.gcs.ops import object_url

    assert object_url(bucket, name) == expected


class TestObjectInfo:
    async def test_ok(self):
        from gcslib.gcs.ops import gcs_object_info

        transport = MockTransport(lambda call: MockResponse.from_json({"kind": "storage#object", "name": "a.txt"}))
        obj = await gcs_object_info(transport, TOKEN, "bkt", "a.txt")  # type: ignore[arg-type]
        assert obj == {"kind": "storage#object", "name": "a.txt"}
        (call,) = transport.calls
        assert call.method == "GET"
        assert call.url == f"{API}/b/bkt/o/a.txt"
        assert call.kwargs["headers"] == {"Authorization": f"Bearer {TOKEN}"}

    async def test_not_found(self):
        from gcslib.gcs.errors import RemoteOperationError
        from gcslib.gcs.ops import gcs_object_info

        transport = MockTransport(lambda call: MockResponse(status_code=404, reason="Not Found"))
        with pytest.raises(RemoteOperationError, match="Not Found") as e:
            await gcs_object_info(transport, TOKEN, "bkt", "missing.txt")  # type: ignore[arg-type]
        assert e.value.status_code == 404


class TestDeleteObject:
    async def test_no_content(self):
        from gcslib.gcs.ops import gcs_delete_object

        transport = MockTransport(lambda call: MockResponse(status_code=204))
        assert await gcs_delete_object(transport, TOKEN, "bkt", "a.txt") is True  # type: ignore[arg-type]
        assert transport.calls[0].method == "DELETE"
        assert transport.calls[0].url == f"{API}/b/bkt/o/a.txt"

    async def test_unexpected_ok(self):
        from gcslib.gcs.errors import RemoteOperationError
        from gcslib.gcs.ops import gcs_delete_object

        transport = MockTransport(lambda call: MockResponse(status_code=200, reason="OK"))
        with pytest.raises(RemoteOperationError) as e:
            await gcs_delete_object(transport, TOKEN, "bkt", "a.txt")  # type: ignore[arg-type]
        assert e.value.status_code == 200


async def test_download():
    from gcslib.gcs.ops import gcs_download

    transport = MockTransport(lambda call: MockResponse(content=b"Hello, World!"))
    assert await gcs_download(transport, TOKEN, "bkt", "a.txt") == b"Hello, World!"  # type: ignore[arg-type]
    (call,) = transport.calls
    assert call.url == f"{API}/b/bkt/o/a.txt"
    assert call.kwargs["params"]["alt"] == "media"
    assert call.kwargs["params"]["no"].isdigit()


@pytest.mark.parametrize(
    ("kwargs", "expected_params", "expected_resource", "expected_content_type"),
    [
        pytest.param(
            {"metadata": {"foo": "bar"}},
            {"name": "dir/a.txt", "uploadType": "multipart"},
            {"metadata": {"foo": "bar"}},
            "application/octet-stream",
            id="metadata",
        ),
        pytest.param(
            {"published": True},
            {"name": "dir/a.txt", "uploadType": "multipart", "predefinedAcl": "publicRead"},
            {"metadata": None},
            "application/octet-stream",
            id="published",
        ),
        pytest.param(
            {"content_type": "text/plain", "cache_control": "no-cache"},
            {"name": "dir/a.txt", "uploadType": "multipart"},
            {"metadata": None, "contentType": "text/plain", "cacheControl": "no-cache"},
            "text/plain",
            id="content_type",
        ),
    ],
)
async def test_upload(kwargs, expected_params, expected_resource, expected_content_type):
    from gcslib.gcs.ops import gcs_upload

    transport = MockTransport(lambda call: MockResponse.from_json({"name": "dir/a.txt"}))
    obj = await gcs_upload(transport, TOKEN, "bkt", "dir/a.txt", b"content", **kwargs)  # type: ignore[arg-type]
    assert obj == {"name": "dir/a.txt"}

    (call,) = transport.calls
    assert call.method == "POST"
    assert call.url == f"{UPLOAD}/b/bkt/o"
    assert call.kwargs["params"] == expected_params
    assert call.kwargs["headers"] == {"Authorization": f"Bearer {TOKEN}"}
    (_, (_, resource, resource_type)), (_, (_, data, content_type)) = call.kwargs["files"]
    assert resource_type == "application/json"
    assert json.loads(resource) == expected_resource
    assert data == b"content"
    assert content_type == expected_content_type


async def test_upload_file(tmp_path):
    from gcslib.gcs.ops import gcs_upload_file

    file = tmp_path / "report.csv"
    file.write_bytes(b"a,b\n1,2\n")
    transport = MockTransport(lambda call: MockResponse.from_json({"name": "reports/report.csv"}))
    await gcs_upload_file(transport, TOKEN, "bkt", file, "reports/report.csv")  # type: ignore[arg-type]
    (call,) = transport.calls
    assert call.kwargs["params"]["name"] == "reports/report.csv"
    assert call.kwargs["files"][1][1][1] == b"a,b\n1,2\n"


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        pytest.param({"kind": "storage#objects", "items": [{"name": "a"}, {"name": "b"}]}, ["a", "b"], id="items"),
        pytest.param({"kind": "storage#objects"}, [], id="empty_bucket"),
    ],
)
async def test_list_objects(body, expected):
    from gcslib.gcs.ops import gcs_list_objects

    transport = MockTransport(lambda call: MockResponse.from_json(body))
    objects = await gcs_list_objects(transport, TOKEN, "bkt")  # type: ignore[arg-type]
    assert [o["name"] for o in objects] == expected
    assert transport.calls[0].url == f"{API}/b/bkt/o"


async def test_bucket_info():
    from gcslib.gcs.ops import gcs_bucket_info

    transport = MockTransport(lambda call: MockResponse.from_json({"kind": "storage#bucket", "name": "bkt"}))
    assert (await gcs_bucket_info(transport, TOKEN, "bkt"))["name"] == "bkt"  # type: ignore[arg-type]
    assert transport.calls[0].method == "GET"
    assert transport.calls[0].url == f"{API}/b/bkt"


async def test_update_bucket():
    from gcslib.gcs.ops import gcs_update_bucket

    transport = MockTransport(
        lambda call: MockResponse.from_json({"kind": "storage#bucket", "name": "bkt", **call.kwargs["json"]})
    )
    bucket = await gcs_update_bucket(transport, TOKEN, "bkt", {"labels": {"env": "test"}})  # type: ignore[arg-type]
    assert bucket["labels"] == {"env": "test"}
    (call,) = transport.calls
    assert call.method == "PATCH"
    assert call.kwargs["json"] == {"labels": {"env": "test"}}


async def test_custom_base_url():
    from gcslib.gcs.ops import gcs_object_info

    transport = MockTransport(lambda call: MockResponse.from_json({"name": "a"}))
    await gcs_object_info(transport, TOKEN, "bkt", "a", base_url="http://localhost:4443/storage/v1")  # type: ignore[arg-type]
    assert transport.calls[0].url == "http://localhost:4443/storage/v1/b/bkt/o/a"
