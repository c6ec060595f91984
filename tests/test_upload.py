from botocore.exceptions import ClientError

from conftest import STORAGE_BUCKET, STORAGE_ENDPOINT


def test_upload_avatar(client, s3_client):
    user_id = client.user["id"]
    r = client.post(
        "/api/upload-avatar",
        data={"userId": user_id},
        files={"file": ("me.png", b"\x89PNG", "image/png")},
    )
    assert r.status_code == 200
    assert r.json() == {"url": f"{STORAGE_ENDPOINT}/{STORAGE_BUCKET}/{user_id}/me.png"}

    call = s3_client.calls[0]
    assert call["Key"] == f"{user_id}/me.png"
    assert call["ACL"] == "public-read"
    assert call["Body"] == b"\x89PNG"


def test_upload_requires_file_and_user(client):
    r = client.post("/api/upload-avatar", data={"userId": client.user["id"]})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing file or userId"}

    r = client.post("/api/upload-avatar", files={"file": ("me.png", b"x", "image/png")})
    assert r.status_code == 400


def test_upload_other_users_folder_is_forbidden(client):
    r = client.post(
        "/api/upload-avatar",
        data={"userId": "someone-else"},
        files={"file": ("me.png", b"x", "image/png")},
    )
    assert r.status_code == 403


def test_upload_only_accepts_post(client):
    r = client.get("/api/upload-avatar")
    assert r.status_code == 405
    assert r.json() == {"error": "Method not allowed"}


def test_upload_storage_failure(client, s3_client):
    s3_client.error = ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
    r = client.post(
        "/api/upload-avatar",
        data={"userId": client.user["id"]},
        files={"file": ("me.png", b"x", "image/png")},
    )
    assert r.status_code == 500
    assert r.json() == {"error": "Upload failed"}


def test_upload_key_drops_directories_from_filename(client, s3_client):
    user_id = client.user["id"]
    r = client.post(
        "/api/upload-avatar",
        data={"userId": user_id},
        files={"file": ("../../x.png", b"x", "image/png")},
    )
    assert r.status_code == 200
    assert s3_client.calls[0]["Key"] == f"{user_id}/x.png"
    assert r.json()["url"].endswith(f"/{user_id}/x.png")


def test_upload_rejects_filename_without_basename(client, s3_client):
    r = client.post(
        "/api/upload-avatar",
        data={"userId": client.user["id"]},
        files={"file": ("avatars/", b"x", "image/png")},
    )
    assert r.status_code == 400
    assert s3_client.calls == []


def test_upload_runs_storage_call_in_threadpool(client, s3_client, monkeypatch):
    from ahorrai.routers import upload

    offloaded = []
    original = upload.run_in_threadpool

    async def recording(func, *args, **kwargs):
        offloaded.append(getattr(func, "__name__", func))
        return await original(func, *args, **kwargs)

    monkeypatch.setattr(upload, "run_in_threadpool", recording)
    r = client.post(
        "/api/upload-avatar",
        data={"userId": client.user["id"]},
        files={"file": ("me.png", b"x", "image/png")},
    )
    assert r.status_code == 200
    assert offloaded == ["upload"]
    assert len(s3_client.calls) == 1
