"""
Unit tests for the Supabase Storage asset adapter.
Tests image upload, public URL handling, id derivation, and deletion.
"""

import pytest
import os
from unittest.mock import Mock, patch

from app.errors import AssetDeleteFailed, UploadFailed
from app.services.storage import (
    IMAGE_EXTENSIONS,
    SupabaseAssetStore,
    _extension_for,
    _rewrite_public_url_host,
    derive_asset_id,
)

PUBLIC_BASE = "https://test.supabase.co/storage/v1/object/public/newsletter-assets"


def _store_with_mock_client():
    client = Mock()
    bucket = client.storage.from_.return_value
    bucket.get_public_url.side_effect = lambda path: f"{PUBLIC_BASE}/{path}?"
    return SupabaseAssetStore(client), client, bucket


class TestUpload:
    """Test image upload to Supabase Storage."""

    def test_successful_upload_returns_public_url(self):
        store, client, bucket = _store_with_mock_client()

        with patch("app.services.storage.uuid4") as mock_uuid:
            mock_uuid.return_value = Mock(hex="abc123")
            with patch.dict(os.environ, {"SUPABASE_PUBLIC_URL": ""}):
                url = store.upload(b"\x89PNG", filename="banner.png", content_type="image/png")

        assert url == f"{PUBLIC_BASE}/newsletters/abc123.png"
        client.storage.from_.assert_called_with("newsletter-assets")
        path, data, options = bucket.upload.call_args[0]
        assert path == "newsletters/abc123.png"
        assert data == b"\x89PNG"
        assert options["content-type"] == "image/png"

    def test_upload_uses_folder_hint(self):
        store, _, bucket = _store_with_mock_client()

        store.upload(b"img", folder="archive", content_type="image/jpeg")

        uploaded_path = bucket.upload.call_args[0][0]
        assert uploaded_path.startswith("archive/")
        assert uploaded_path.endswith(".jpg")

    def test_upload_paths_are_unique(self):
        store, _, bucket = _store_with_mock_client()

        store.upload(b"one", content_type="image/png")
        store.upload(b"two", content_type="image/png")

        paths = [c[0][0] for c in bucket.upload.call_args_list]
        assert paths[0] != paths[1]

    def test_upload_failure_raises_upload_failed(self):
        store, _, bucket = _store_with_mock_client()
        bucket.upload.side_effect = Exception("Storage error")

        with pytest.raises(UploadFailed) as exc_info:
            store.upload(b"img", content_type="image/png")

        assert "Storage error" in str(exc_info.value)

    def test_upload_without_client_raises_upload_failed(self):
        store = SupabaseAssetStore(None)

        with pytest.raises(UploadFailed) as exc_info:
            store.upload(b"img")

        assert "SUPABASE_SERVICE_KEY" in str(exc_info.value)

    def test_public_url_host_is_rewritten(self):
        store, _, _ = _store_with_mock_client()

        with patch.dict(os.environ, {"SUPABASE_PUBLIC_URL": "https://cdn.example.com"}):
            url = store.upload(b"img", content_type="image/png")

        assert url.startswith("https://cdn.example.com/storage/v1/object/public/newsletter-assets/newsletters/")


class TestExtensionFor:

    def test_filename_extension_wins(self):
        assert _extension_for("photo.PNG", "image/jpeg") == ".png"

    def test_falls_back_to_content_type(self):
        assert _extension_for(None, "image/gif") == ".gif"

    def test_unknown_type_defaults_to_jpg(self):
        assert _extension_for("blob", "application/octet-stream") == ".jpg"


class TestDeriveAssetId:

    def test_strips_folder_and_extension(self):
        assert derive_asset_id(f"{PUBLIC_BASE}/newsletters/abcd123.jpg") == "abcd123"

    def test_ignores_query_string(self):
        assert derive_asset_id("https://cdn.example.com/newsletters/abcd123.png?width=600") == "abcd123"

    def test_plain_path(self):
        assert derive_asset_id("newsletters/abcd123.webp") == "abcd123"


class TestDeleteByDerivedId:

    def test_removes_every_candidate_extension(self):
        store, _, bucket = _store_with_mock_client()
        bucket.remove.return_value = [{"name": "newsletters/abcd123.jpg"}]

        assert store.delete_by_derived_id("abcd123") is True

        removed = bucket.remove.call_args[0][0]
        assert removed == [f"newsletters/abcd123{ext}" for ext in IMAGE_EXTENSIONS]

    def test_nothing_matched_returns_false(self):
        store, _, bucket = _store_with_mock_client()
        bucket.remove.return_value = []

        assert store.delete_by_derived_id("gone") is False

    def test_empty_id_is_a_no_op(self):
        store, _, bucket = _store_with_mock_client()

        assert store.delete_by_derived_id("") is False
        bucket.remove.assert_not_called()

    def test_storage_error_raises_asset_delete_failed(self):
        store, _, bucket = _store_with_mock_client()
        bucket.remove.side_effect = Exception("Storage error")

        with pytest.raises(AssetDeleteFailed):
            store.delete_by_derived_id("abcd123")


class TestRewritePublicUrlHost:

    def test_no_env_var_returns_url_unchanged(self):
        url = "http://host.docker.internal:54321/storage/v1/object/public/newsletter-assets/newsletters/a.png"
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("SUPABASE_PUBLIC_URL", None)
            assert _rewrite_public_url_host(url) == url

    def test_env_var_set_replaces_host_and_scheme(self):
        url = "http://host.docker.internal:54321/storage/v1/object/public/newsletter-assets/newsletters/a.png"
        expected = "http://localhost:54321/storage/v1/object/public/newsletter-assets/newsletters/a.png"
        with patch.dict(os.environ, {"SUPABASE_PUBLIC_URL": "http://localhost:54321"}):
            assert _rewrite_public_url_host(url) == expected
