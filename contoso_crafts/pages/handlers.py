"""Page handlers for the catalog screens.

Each handler wraps one screen (index, read, create, update, delete). They
call the store, the upload workflow and the validators, and answer with a
:class:`Render` (show the page, possibly with errors) or a
:class:`Redirect` (go elsewhere, possibly with a flash message). They
never raise for bad input or missing records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from contoso_crafts.data.models import Product, UniversityType
from contoso_crafts.data.product_store import ProductStore
from contoso_crafts.uploads.workflow import (
    DeleteImageResult,
    ImageUploadWorkflow,
    UploadedFile,
    UploadResult,
)
from contoso_crafts.utils.slug import generate_id
from contoso_crafts.validation.sanitizer import (
    FieldError,
    check_update_required,
    clean_product_lists,
    validate_for_create,
    validate_product_fields,
)

logger = logging.getLogger(__name__)

INDEX = "index"

ALREADY_DELETED_MESSAGE = "Could not update. The product was already deleted."
UPDATE_FAILED_MESSAGE = "Update failed. Product not found."


@dataclass
class Render:
    """Show the page for *product*, with *errors* if the form was rejected."""

    product: Optional[Product] = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class Redirect:
    """Navigate to *target*, optionally flashing *message* to the user."""

    target: str = INDEX
    message: Optional[str] = None


PageResult = Union[Render, Redirect]


def filter_products(
    products: Iterable[Optional[Product]],
    search_term: str | None = None,
    type_filter: str | None = None,
) -> list[Product]:
    """Apply the catalog search box and type dropdown.

    *search_term* matches title or description, ignoring case; title hits
    come first and each record appears once. *type_filter* is a type name
    (any case); an unknown name leaves the list unfiltered.
    """
    rows = [p for p in products if p is not None]

    if search_term and search_term.strip():
        term = search_term.casefold()
        by_title = [p for p in rows if p.title and term in p.title.casefold()]
        by_description = [
            p for p in rows if p.description and term in p.description.casefold()
        ]
        seen: set[int] = set()
        rows = []
        for product in by_title + by_description:
            if id(product) not in seen:
                seen.add(id(product))
                rows.append(product)

    if type_filter and type_filter.strip():
        wanted = UniversityType.from_name(type_filter)
        if wanted is not None:
            rows = [p for p in rows if p.type_of_university == wanted]

    return rows


class IndexPage:
    """Catalog listing with optional search and type filter."""

    def __init__(self, store: ProductStore | None) -> None:
        self.store = store

    def get(
        self, search_term: str | None = None, type_filter: str | None = None
    ) -> list[Product]:
        if self.store is None:
            return []
        return filter_products(self.store.get_all(), search_term, type_filter)


class ReadPage:
    """Detail view of one record."""

    def __init__(self, store: ProductStore | None) -> None:
        self.store = store

    def get(self, product_id: str | None) -> PageResult:
        if self.store is None:
            return Redirect()
        product = self.store.find(product_id)
        if product is None:
            return Redirect()
        return Render(product)


class CreatePage:
    """New-record form plus its AJAX image upload/delete endpoints."""

    def __init__(self, store: ProductStore, uploads: ImageUploadWorkflow) -> None:
        self.store = store
        self.uploads = uploads

    def get(self) -> Render:
        return Render(Product())

    def post(self, product: Product | None) -> PageResult:
        if product is None:
            product = Product()

        clean_product_lists(product)
        errors = validate_for_create(product)
        if errors:
            return Render(product, errors)

        product.id = self._unique_id(product.title)
        self.store.create(product)
        return Redirect()

    def _unique_id(self, title: str | None) -> str:
        """Slug of *title*, numbered when another record already uses it."""
        base = generate_id(title)
        taken = {
            p.id.casefold()
            for p in self.store.get_all()
            if p is not None and p.id is not None
        }
        candidate, counter = base, 2
        while candidate.casefold() in taken:
            candidate = f"{base}{counter}"
            counter += 1
        return candidate

    def upload_image(self, upload: UploadedFile | None, title: str | None) -> UploadResult:
        return self.uploads.upload_image(upload, title)

    def delete_image(self, image_path: str | None) -> DeleteImageResult:
        return self.uploads.delete_image(image_path)


class UpdatePage:
    """Edit form for an existing record, with optional image replacement."""

    def __init__(
        self, store: ProductStore | None, uploads: ImageUploadWorkflow | None
    ) -> None:
        self.store = store
        self.uploads = uploads

    def get(self, product_id: str | None) -> PageResult:
        if self.store is None:
            return Redirect()
        product = self.store.find(product_id)
        if product is None:
            return Redirect()
        return Render(product)

    def post(
        self, product: Product | None, upload: UploadedFile | None = None
    ) -> PageResult:
        if self.store is None or product is None:
            return Redirect()
        if product.id is None or not product.id.strip():
            return Redirect()

        errors = validate_product_fields(product, require_image=False)
        if errors:
            return Render(product, errors)

        if upload is not None and upload.length > 0:
            result = self.uploads.replace_image(upload, product.title, product.image)
            if not result.success:
                return Render(product, [FieldError("", result.error)])
            product.image = result.image_path

        clean_product_lists(product)

        errors = check_update_required(product)
        if errors:
            return Render(product, errors)

        # The record may have been deleted since the form was opened
        wanted = product.id.strip().casefold()
        still_there = any(
            p is not None and p.id is not None and p.id.strip().casefold() == wanted
            for p in self.store.get_all()
        )
        if not still_there:
            logger.info("Update of %s skipped: record no longer exists", product.id)
            return Redirect(message=ALREADY_DELETED_MESSAGE)

        if not self.store.update(product):
            return Render(product, [FieldError("", UPDATE_FAILED_MESSAGE)])

        return Redirect()


class DeletePage:
    """Delete confirmation and the delete action."""

    def __init__(self, store: ProductStore) -> None:
        self.store = store

    def get(self, product_id: str | None) -> PageResult:
        if product_id is None or not product_id.strip():
            return Redirect(message="Invalid product identifier.")
        product = self.store.find(product_id)
        if product is None:
            return Redirect()
        return Render(product)

    def post(self, product_id: str | None) -> Redirect:
        if product_id is None or not product_id.strip():
            return Redirect(message="Invalid product identifier. Deletion aborted.")
        if self.store.find(product_id) is None:
            return Redirect(message="Product does not exist. No deletion performed.")

        self.store.delete(product_id)
        return Redirect()
