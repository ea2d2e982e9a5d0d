"""Unit tests for MIME checks, filename sanitisation and storage paths"""

from uuid import UUID

import pytest

from menuflow.domain.ingestion.validation import (
    build_preview_path,
    build_storage_path,
    is_supported_mime_type,
    parse_boolean_flag,
    preview_extension,
    sanitize_filename,
)

TENANT_ID = UUID("a1b2c3d4-e5f6-7890-abcd-ef1234567890")
INGESTION_ID = UUID("12345678-1234-5678-1234-567812345678")


class TestMimeValidation:

    @pytest.mark.parametrize("mime", [
        "application/pdf", "image/png", "image/jpeg", "image/jpg", "image/webp", "IMAGE/PNG",
    ])
    def test_supported(self, mime):
        assert is_supported_mime_type(mime)

    @pytest.mark.parametrize("mime", [None, "", "image/gif", "text/plain", "application/msword"])
    def test_unsupported(self, mime):
        assert not is_supported_mime_type(mime)


class TestSanitizeFilename:

    def test_lowercases_and_collapses_unsafe_characters(self):
        assert sanitize_filename("Dinner Menu (Spring).PDF") == "dinner-menu-spring-.pdf"

    def test_keeps_last_path_segment(self):
        assert sanitize_filename("../../etc/passwd") == "passwd"

    def test_squeezes_and_trims_dashes(self):
        assert sanitize_filename("--Lunch   &&  Brunch--.jpg") == "lunch-brunch-.jpg"

    def test_keeps_allowed_characters(self):
        assert sanitize_filename("menu_v2.final-1.png") == "menu_v2.final-1.png"

    @pytest.mark.parametrize("original", [None, "", "   ", "///", "€€€"])
    def test_empty_result_falls_back(self, original):
        assert sanitize_filename(original, now_ms=1700000000000) == "menu-1700000000000"


class TestStoragePaths:

    def test_storage_path(self):
        assert build_storage_path(TENANT_ID, INGESTION_ID, "menu.pdf") == (
            "a1b2c3d4-e5f6-7890-abcd-ef1234567890/12345678-1234-5678-1234-567812345678/menu.pdf"
        )

    def test_storage_path_strips_unsafe_segment_characters(self):
        assert build_storage_path("Tenant/../1", "ing_2", "menu.pdf") == "Tenant1/ing2/menu.pdf"

    def test_preview_path_is_zero_padded(self):
        path = build_preview_path(TENANT_ID, INGESTION_ID, 3, "png")
        assert path.endswith("/12345678-1234-5678-1234-567812345678/page-003.png")

    @pytest.mark.parametrize("content_type,extension", [
        ("image/png", "png"),
        ("image/jpeg", "jpg"),
        ("image/jpg", "jpg"),
        ("image/webp", "webp"),
    ])
    def test_preview_extension(self, content_type, extension):
        assert preview_extension(content_type) == extension


class TestBooleanFlags:

    @pytest.mark.parametrize("value", [True, "true", "1", "YES", " y "])
    def test_truthy(self, value):
        assert parse_boolean_flag(value) is True

    @pytest.mark.parametrize("value", [False, "false", "0", "no", "maybe"])
    def test_falsy(self, value):
        assert parse_boolean_flag(value, fallback=True) is False

    def test_fallback_for_missing_or_other_types(self):
        assert parse_boolean_flag(None, fallback=True) is True
        assert parse_boolean_flag(1) is False
