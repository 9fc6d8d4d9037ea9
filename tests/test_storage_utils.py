import pytest
from fastapi import HTTPException

from storefront.core.storage_utils import (
    extract_path_from_public_url,
    generate_filename,
    validate_image,
)


class TestValidateImage:
    @pytest.mark.parametrize(
        "content_type, ext",
        [("image/jpeg", "jpg"), ("image/png", "png"), ("image/gif", "gif"), ("image/webp", "webp")],
    )
    def test_allowed_types(self, content_type, ext):
        assert validate_image(content_type, b"data") == ext

    @pytest.mark.parametrize("content_type", [None, "", "text/plain", "image/svg+xml"])
    def test_rejected_types(self, content_type):
        with pytest.raises(HTTPException) as exc:
            validate_image(content_type, b"data")
        assert exc.value.status_code == 400

    def test_empty_file(self):
        with pytest.raises(HTTPException) as exc:
            validate_image("image/png", b"")
        assert exc.value.status_code == 400


class TestPublicUrls:
    def test_extracts_object_path(self):
        url = "https://p.supabase.co/storage/v1/object/public/assets/products/7/a.png"
        assert extract_path_from_public_url(url) == "products/7/a.png"

    def test_drops_query_string(self):
        url = "https://p.supabase.co/storage/v1/object/public/assets/categories/3/image.png?t=1"
        assert extract_path_from_public_url(url) == "categories/3/image.png"

    def test_foreign_url(self):
        assert extract_path_from_public_url("https://cdn.example.com/a.png") is None

    def test_generated_names_are_unique(self):
        names = {generate_filename("png") for _ in range(20)}
        assert len(names) == 20
        assert all(name.endswith(".png") for name in names)
