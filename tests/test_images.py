"""
Tests for campaign image upload and storage backends.
"""

import os
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from poap_gateway.config import settings
from poap_gateway.services.images import ImageValidationError, validate_image
from poap_gateway.utils.storage import LocalStorage, S3Storage, StorageError, set_storage

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _upload(client, campaign_id, headers, filename="badge.png", content=PNG, content_type="image/png"):
    return client.post(
        f"/api/campaigns/{campaign_id}/image",
        headers=headers,
        files={"image": (filename, content, content_type)},
    )


class TestImageUpload:

    def test_upload_sets_image_url(self, client, auth_headers, create_campaign):
        campaign = create_campaign()
        resp = _upload(client, campaign["id"], auth_headers)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["id"] == campaign["id"]
        assert data["imageUrl"].startswith("/uploads/")
        assert data["imageUrl"].endswith(".png")

        # Served back as a static file
        served = client.get(data["imageUrl"])
        assert served.status_code == 200
        assert served.content == PNG

        fetched = client.get(f"/api/campaigns/{campaign['id']}", headers=auth_headers).json()["data"]
        assert fetched["imageUrl"] == data["imageUrl"]

    def test_file_over_5mb_rejected(self, client, auth_headers, create_campaign):
        campaign = create_campaign()
        big = b"\x00" * (5 * 1024 * 1024 + 1)
        resp = _upload(client, campaign["id"], auth_headers, content=big)
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_exactly_5mb_accepted(self, client, auth_headers, create_campaign):
        campaign = create_campaign()
        resp = _upload(client, campaign["id"], auth_headers, content=b"\x00" * (5 * 1024 * 1024))
        assert resp.status_code == 200

    def test_disallowed_mime_rejected(self, client, auth_headers, create_campaign):
        campaign = create_campaign()
        resp = _upload(client, campaign["id"], auth_headers, filename="notes.txt",
                       content=b"hello", content_type="text/plain")
        assert resp.status_code == 400

    def test_html_filename_stored_as_declared_image_type(self, client, auth_headers, create_campaign):
        campaign = create_campaign()
        resp = _upload(client, campaign["id"], auth_headers, filename="x.html",
                       content=b"<script>alert(1)</script>", content_type="image/png")
        assert resp.status_code == 200
        image_url = resp.json()["data"]["imageUrl"]
        assert image_url.endswith(".png")

        served = client.get(image_url)
        assert served.headers["content-type"] == "image/png"

    def test_missing_file(self, client, auth_headers, create_campaign):
        campaign = create_campaign()
        resp = client.post(f"/api/campaigns/{campaign['id']}/image", headers=auth_headers)
        assert resp.status_code == 400

    def test_other_organizers_campaign(self, client, register, create_campaign):
        token_a, _ = register(email="a@example.com")
        token_b, _ = register(email="b@example.com")
        campaign = create_campaign(headers={"Authorization": f"Bearer {token_a}"})

        resp = _upload(client, campaign["id"], {"Authorization": f"Bearer {token_b}"})
        assert resp.status_code == 404

    def test_requires_auth(self, client, create_campaign):
        campaign = create_campaign()
        assert _upload(client, campaign["id"], {}).status_code == 401

    def test_storage_failure_is_500(self, client, auth_headers, create_campaign):
        campaign = create_campaign()
        failing = MagicMock()
        failing.put_object.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject")
        set_storage(S3Storage(bucket="b", region="r", client=failing))
        try:
            resp = _upload(client, campaign["id"], auth_headers)
        finally:
            set_storage(None)

        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Failed to store image"}


class TestValidateImage:

    @pytest.mark.parametrize("mime", ["image/png", "image/jpeg", "image/jpg", "image/gif", "image/webp"])
    def test_allowed_types(self, mime):
        validate_image(mime, 1024)

    @pytest.mark.parametrize("mime", ["image/svg+xml", "application/pdf", None])
    def test_rejected_types(self, mime):
        with pytest.raises(ImageValidationError):
            validate_image(mime, 1024)

    def test_size_limit(self):
        with pytest.raises(ImageValidationError):
            validate_image("image/png", settings.MAX_IMAGE_BYTES + 1)


class TestStorageBackends:

    def test_local_storage_extension_from_mime(self, tmp_path):
        storage = LocalStorage(str(tmp_path))
        url = storage.save(b"data", "photo.png", "image/jpeg")
        name = url.rsplit("/", 1)[1]
        assert url.startswith("/uploads/")
        assert name.endswith(".jpg")
        assert len(name) == 16 + len(".jpg")
        assert (tmp_path / name).read_bytes() == b"data"

    @pytest.mark.parametrize("filename", ["x.html", "x.svg", "x.png.html"])
    def test_local_storage_ignores_uploaded_extension(self, tmp_path, filename):
        url = LocalStorage(str(tmp_path)).save(b"<script>alert(1)</script>", filename, "image/png")
        assert url.endswith(".png")
        assert ".html" not in url and ".svg" not in url

    def test_local_storage_default_extension(self, tmp_path):
        url = LocalStorage(str(tmp_path)).save(b"data", "noext")
        assert url.endswith(".png")
        assert len(os.listdir(tmp_path)) == 1

    def test_s3_storage_puts_object(self):
        client = MagicMock()
        storage = S3Storage(bucket="poap-images", region="eu-west-1", client=client)

        url = storage.save(b"data", "badge.webp", "image/webp")

        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "poap-images"
        assert kwargs["Key"].startswith("campaigns/") and kwargs["Key"].endswith(".webp")
        assert kwargs["ContentType"] == "image/webp"
        assert url == f"https://poap-images.s3.eu-west-1.amazonaws.com/{kwargs['Key']}"

    def test_s3_storage_error(self):
        client = MagicMock()
        client.put_object.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject")
        with pytest.raises(StorageError):
            S3Storage(bucket="b", region="r", client=client).save(b"data", "x.png")
