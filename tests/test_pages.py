"""Tests for contoso_crafts.pages.handlers module."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from conftest import JPEG_BYTES, PNG_BYTES, sample_record
from contoso_crafts.data.models import Product, UniversityType
from contoso_crafts.pages.handlers import (
    ALREADY_DELETED_MESSAGE,
    UPDATE_FAILED_MESSAGE,
    CreatePage,
    DeletePage,
    IndexPage,
    ReadPage,
    Redirect,
    Render,
    UpdatePage,
    filter_products,
)
from contoso_crafts.uploads.workflow import ImageUploadWorkflow, UploadedFile
from contoso_crafts.validation.sanitizer import REQUIRED_FIELDS_MESSAGE, FieldError


@pytest.fixture
def uploads(web_root: Path) -> ImageUploadWorkflow:
    return ImageUploadWorkflow(
        web_root, clock=lambda: datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    )


def _form(**overrides) -> Product:
    """A product as bound from a valid create/update form."""
    fields = dict(
        title="Hello World 123",
        description="A test university.",
        url="https://hello.example.edu",
        image="/images/HW_20240101000000.png",
        location="Springfield",
        graduate_degree=["MSc"],
        under_graduate_degree=["BSc"],
        type_of_university=UniversityType.PUBLIC,
        number_of_departments=5,
        campuses=["Main"],
    )
    fields.update(overrides)
    return Product(**fields)


# ======================================================================
# Index
# ======================================================================


class TestFilterProducts:
    """Test search and type filtering."""

    @pytest.fixture
    def catalog(self) -> list[Product]:
        return [
            Product(id="a", title="Alpha College", description="Small", type_of_university="Private"),
            Product(id="b", title="Beta", description="Has an alpha lab", type_of_university="Public"),
            Product(id="c", title="Gamma", description="Nothing", type_of_university="Public"),
        ]

    def test_no_filters(self, catalog) -> None:
        assert [p.id for p in filter_products(catalog)] == ["a", "b", "c"]

    def test_search_title_then_description(self, catalog) -> None:
        assert [p.id for p in filter_products(catalog, "ALPHA")] == ["a", "b"]

    def test_match_in_both_listed_once(self) -> None:
        product = Product(id="x", title="Tech", description="tech school")
        assert filter_products([product], "tech") == [product]

    def test_type_filter(self, catalog) -> None:
        assert [p.id for p in filter_products(catalog, type_filter="public")] == ["b", "c"]

    def test_unknown_type_ignored(self, catalog) -> None:
        assert len(filter_products(catalog, type_filter="Ivy")) == 3

    def test_combined(self, catalog) -> None:
        assert [p.id for p in filter_products(catalog, "alpha", "Public")] == ["b"]

    def test_null_rows_skipped(self) -> None:
        assert filter_products([None, Product(id="a")]) == [Product(id="a")]


class TestIndexPage:
    """Test the listing page."""

    def test_lists_store(self, seed) -> None:
        store = seed(sample_record("a"), sample_record("b"))
        assert [p.id for p in IndexPage(store).get()] == ["a", "b"]

    def test_without_store(self) -> None:
        assert IndexPage(None).get() == []


# ======================================================================
# Read
# ======================================================================


class TestReadPage:
    """Test the detail page."""

    def test_found(self, seed) -> None:
        store = seed(sample_record("mit"))
        result = ReadPage(store).get("mit")
        assert isinstance(result, Render)
        assert result.product.id == "mit"

    @pytest.mark.parametrize("product_id", ["MIT", "nope", "", None])
    def test_missing_redirects(self, seed, product_id) -> None:
        store = seed(sample_record("mit"))
        assert ReadPage(store).get(product_id) == Redirect()

    def test_without_store(self) -> None:
        assert ReadPage(None).get("mit") == Redirect()


# ======================================================================
# Create
# ======================================================================


class TestCreatePage:
    """Test the new-record flow."""

    def test_get_blank_form(self, store, uploads) -> None:
        result = CreatePage(store, uploads).get()
        assert result.product.title == ""
        assert result.is_valid

    def test_post_saves_with_title_slug(self, store, uploads) -> None:
        result = CreatePage(store, uploads).post(_form())

        assert result == Redirect()
        saved = store.get_all()
        assert [p.id for p in saved] == ["hw"]
        assert saved[0].ratings == []

    def test_post_cleans_lists(self, store, uploads) -> None:
        CreatePage(store, uploads).post(
            _form(campuses=[" North ", "", None], graduate_degree=["MSc", " "])
        )
        saved = store.get_all()[0]
        assert saved.campuses == ["North"]
        assert saved.graduate_degree == ["MSc"]

    def test_post_invalid_rerenders(self, store, uploads) -> None:
        result = CreatePage(store, uploads).post(_form(url="http://x", campuses=["", " "]))

        assert isinstance(result, Render)
        assert not result.is_valid
        assert [e.field for e in result.errors] == ["Product.Url", "Product.Campuses"]
        assert store.get_all() == []

    def test_post_none(self, store, uploads) -> None:
        result = CreatePage(store, uploads).post(None)
        assert isinstance(result, Render)
        assert store.get_all() == []

    def test_slug_collision_numbered(self, seed, uploads) -> None:
        store = seed(sample_record("hw"), sample_record("HW2"))
        page = CreatePage(store, uploads)

        page.post(_form())
        assert [p.id for p in store.get_all()] == ["hw", "HW2", "hw3"]

    def test_upload_and_delete_image(self, store, uploads, web_root: Path) -> None:
        page = CreatePage(store, uploads)

        uploaded = page.upload_image(UploadedFile("x.png", PNG_BYTES), "Hello World")
        assert uploaded.image_path == "/images/HW_20240102030405.png"
        assert (web_root / "images" / "HW_20240102030405.png").exists()

        assert page.delete_image(uploaded.image_path).success
        assert not (web_root / "images" / "HW_20240102030405.png").exists()


# ======================================================================
# Update
# ======================================================================


class TestUpdatePage:
    """Test the edit flow."""

    def test_get(self, seed, uploads) -> None:
        store = seed(sample_record("mit"))
        assert UpdatePage(store, uploads).get("mit").product.id == "mit"
        assert UpdatePage(store, uploads).get("other") == Redirect()

    def test_post_updates(self, seed, uploads) -> None:
        store = seed(sample_record("hw", ratings=[3]))
        result = UpdatePage(store, uploads).post(_form(id="hw", title="Renamed"))

        assert result == Redirect()
        saved = store.get_all()[0]
        assert saved.title == "Renamed"
        assert saved.ratings == [3]

    def test_post_replaces_image(self, seed, uploads, web_root: Path) -> None:
        store = seed(sample_record("hw", img="/images/OLD.png"))
        (web_root / "images" / "OLD.png").write_bytes(PNG_BYTES)

        result = UpdatePage(store, uploads).post(
            _form(id="hw", title="New Name", image="/images/OLD.png"),
            UploadedFile("new.jpg", JPEG_BYTES),
        )

        assert result == Redirect()
        assert store.get_all()[0].image == "/images/NN_20240102030405.jpg"
        assert not (web_root / "images" / "OLD.png").exists()

    def test_upload_supplies_missing_image(self, seed, uploads) -> None:
        store = seed(sample_record("hw"))
        result = UpdatePage(store, uploads).post(
            _form(id="hw", image=""), UploadedFile("a.png", PNG_BYTES)
        )
        assert result == Redirect()
        assert store.get_all()[0].image == "/images/HW_20240102030405.png"

    def test_bad_upload_rerenders(self, seed, uploads) -> None:
        store = seed(sample_record("hw"))
        result = UpdatePage(store, uploads).post(
            _form(id="hw"), UploadedFile("a.png", b"not an image")
        )
        assert result.errors == [
            FieldError("", "Uploaded file is not a supported image type (png/jpg/jpeg).")
        ]

    def test_empty_upload_ignored(self, seed, uploads) -> None:
        store = seed(sample_record("hw"))
        result = UpdatePage(store, uploads).post(_form(id="hw"), UploadedFile("a.png", b""))
        assert result == Redirect()

    def test_field_errors_rerender(self, seed, uploads) -> None:
        store = seed(sample_record("hw"))
        result = UpdatePage(store, uploads).post(_form(id="hw", url="ftp://x"))
        assert [e.field for e in result.errors] == ["Product.Url"]

    def test_blank_image_without_upload(self, seed, uploads) -> None:
        store = seed(sample_record("hw"))
        result = UpdatePage(store, uploads).post(_form(id="hw", image=""))
        assert result.errors == [FieldError("", REQUIRED_FIELDS_MESSAGE)]

    def test_empty_campuses_rejected(self, seed, uploads) -> None:
        store = seed(sample_record("hw"))
        result = UpdatePage(store, uploads).post(_form(id="hw", campuses=[" "]))
        assert [e.field for e in result.errors] == ["Product.Campuses"]

    def test_empty_degrees_allowed(self, seed, uploads) -> None:
        store = seed(sample_record("hw"))
        result = UpdatePage(store, uploads).post(
            _form(id="hw", graduate_degree=[], under_graduate_degree=[""])
        )
        assert result == Redirect()
        assert store.get_all()[0].under_graduate_degree == []

    def test_deleted_meanwhile(self, store, uploads) -> None:
        result = UpdatePage(store, uploads).post(_form(id="gone"))
        assert result == Redirect(message=ALREADY_DELETED_MESSAGE)

    def test_case_mismatch_fails_update(self, seed, uploads) -> None:
        store = seed(sample_record("hw"))
        result = UpdatePage(store, uploads).post(_form(id="HW"))
        assert result.errors == [FieldError("", UPDATE_FAILED_MESSAGE)]

    @pytest.mark.parametrize("product_id", [None, "", "  "])
    def test_blank_id_redirects(self, store, uploads, product_id) -> None:
        assert UpdatePage(store, uploads).post(_form(id=product_id)) == Redirect()

    def test_missing_dependencies_redirect(self, uploads) -> None:
        assert UpdatePage(None, uploads).get("hw") == Redirect()
        assert UpdatePage(None, uploads).post(_form(id="hw")) == Redirect()


# ======================================================================
# Delete
# ======================================================================


class TestDeletePage:
    """Test delete confirmation and action."""

    def test_get_found(self, seed) -> None:
        store = seed(sample_record("mit"))
        assert DeletePage(store).get("mit").product.id == "mit"

    def test_get_blank(self, store) -> None:
        assert DeletePage(store).get(" ") == Redirect(message="Invalid product identifier.")

    def test_get_unknown(self, store) -> None:
        assert DeletePage(store).get("nope") == Redirect()

    def test_post_deletes(self, seed) -> None:
        store = seed(sample_record("mit"), sample_record("hw"))
        assert DeletePage(store).post("mit") == Redirect()
        assert [p.id for p in store.get_all()] == ["hw"]

    def test_post_blank(self, store) -> None:
        assert DeletePage(store).post("") == Redirect(
            message="Invalid product identifier. Deletion aborted."
        )

    def test_post_unknown(self, seed) -> None:
        store = seed(sample_record("mit"))
        assert DeletePage(store).post("nope") == Redirect(
            message="Product does not exist. No deletion performed."
        )
        assert len(store.get_all()) == 1
