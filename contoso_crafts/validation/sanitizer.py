"""Cleaning and validation of product form fields.

Validators never raise; they return lists of :class:`FieldError` that the
page handlers show next to the offending inputs. Field paths follow the
form names (``Product.Title``, ``Product.Campuses[2]``); an empty field
means the error belongs to the form as a whole.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from contoso_crafts.data.models import Product

MAX_TITLE_LENGTH = 55
MAX_LOCATION_LENGTH = 55
MAX_DESCRIPTION_LENGTH = 500
MAX_CAMPUS_LENGTH = 55
MAX_DEGREE_LENGTH = 100
MIN_DEPARTMENTS = 1
MAX_DEPARTMENTS = 500

IMAGE_PATH_PATTERN = re.compile(r"^/images/.+\.(png|jpg|jpeg)$", re.IGNORECASE)

REQUIRED_FIELDS_MESSAGE = "All required fields must be filled before updating."


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def clean_entries(values: Iterable[Optional[str]] | None) -> list[str]:
    """Trim every entry and drop the ones that end up empty.

    ``None`` (for the list or an entry) is treated as empty.
    """
    if values is None:
        return []
    return [value.strip() for value in values if not _is_blank(value)]


def clean_product_lists(product: Product) -> Product:
    """Clean degree and campus lists of *product* in place and return it."""
    product.graduate_degree = clean_entries(product.graduate_degree)
    product.under_graduate_degree = clean_entries(product.under_graduate_degree)
    product.campuses = clean_entries(product.campuses)
    return product


def validate_degree_list(
    field: str, degrees: list[Optional[str]] | None, display_name: str
) -> list[FieldError]:
    """Require at least one degree and flag each bad entry by position."""
    if not degrees:
        return [FieldError(field, f"At least one {display_name.lower()} is required.")]

    errors = []
    for index, degree in enumerate(degrees):
        if _is_blank(degree):
            errors.append(
                FieldError(f"{field}[{index}]", f"{display_name} #{index + 1} cannot be empty.")
            )
        elif len(degree) > MAX_DEGREE_LENGTH:
            errors.append(
                FieldError(
                    f"{field}[{index}]",
                    f"{display_name} #{index + 1} cannot exceed {MAX_DEGREE_LENGTH} characters.",
                )
            )
    return errors


def validate_campuses(
    campuses: list[Optional[str]] | None, *, stop_at_first: bool = False
) -> list[FieldError]:
    """Require at least one campus and check each entry.

    Args:
        campuses: Campus names, normally already cleaned.
        stop_at_first: Return as soon as one entry fails (the update form
            does this); otherwise every failing entry is reported.
    """
    if not campuses:
        return [FieldError("Product.Campuses", "At least one campus is required.")]

    errors = []
    for index, campus in enumerate(campuses):
        field = f"Product.Campuses[{index}]"
        if _is_blank(campus):
            errors.append(FieldError(field, f"Campus #{index + 1} cannot be empty."))
        elif len(campus) > MAX_CAMPUS_LENGTH:
            errors.append(
                FieldError(
                    field,
                    f"Campus #{index + 1} cannot exceed {MAX_CAMPUS_LENGTH} characters.",
                )
            )
        if errors and stop_at_first:
            break
    return errors


def validate_product_fields(
    product: Product, *, require_image: bool = True
) -> list[FieldError]:
    """Check the scalar fields of a submitted product.

    Covers required text, length limits, the ``https://`` rule for the
    website, the ``/images/<name>.(png|jpg|jpeg)`` rule for the image and
    the department range. With *require_image* False a blank image passes,
    for forms where an upload may still supply it.
    """
    errors: list[FieldError] = []

    def require(field: str, value: str | None, label: str, limit: int | None) -> None:
        if _is_blank(value):
            errors.append(FieldError(field, f"{label} is required."))
        elif limit is not None and len(value) > limit:
            errors.append(FieldError(field, f"{label} cannot exceed {limit} characters."))

    require("Product.Title", product.title, "Title", MAX_TITLE_LENGTH)
    require("Product.Description", product.description, "Description", MAX_DESCRIPTION_LENGTH)
    require("Product.Location", product.location, "Location", MAX_LOCATION_LENGTH)

    if _is_blank(product.url):
        errors.append(FieldError("Product.Url", "Website URL is required."))
    elif not product.url.startswith("https://"):
        errors.append(FieldError("Product.Url", "Website URL must start with https://"))

    if _is_blank(product.image):
        if require_image:
            errors.append(FieldError("Product.Image", "Image is required."))
    elif not IMAGE_PATH_PATTERN.match(product.image):
        errors.append(
            FieldError("Product.Image", "Image must be a local /images path (png/jpg/jpeg).")
        )

    if not MIN_DEPARTMENTS <= product.number_of_departments <= MAX_DEPARTMENTS:
        errors.append(
            FieldError(
                "Product.NumberOfDepartments",
                f"Number of departments must be between {MIN_DEPARTMENTS} and {MAX_DEPARTMENTS}.",
            )
        )

    return errors


def validate_for_create(product: Product) -> list[FieldError]:
    """Full validation for a new record; every offending entry is reported.

    Expects lists already passed through :func:`clean_product_lists`.
    """
    errors = validate_product_fields(product)
    errors += validate_campuses(product.campuses)
    errors += validate_degree_list(
        "Product.GraduateDegree", product.graduate_degree, "Graduate degree"
    )
    errors += validate_degree_list(
        "Product.UnderGraduateDegree", product.under_graduate_degree, "Undergraduate degree"
    )
    return errors


def check_update_required(product: Product) -> list[FieldError]:
    """First-failure checks the update form applies after cleaning.

    Returns at most one error: a form-level message when a required text
    field is blank, else the first length violation, else the first bad
    campus. Empty degree lists are allowed on update.
    """
    required = (product.title, product.description, product.url, product.image, product.location)
    if any(_is_blank(value) for value in required):
        return [FieldError("", REQUIRED_FIELDS_MESSAGE)]

    limits = (
        ("Product.Title", product.title, "Title", MAX_TITLE_LENGTH),
        ("Product.Location", product.location, "Location", MAX_LOCATION_LENGTH),
        ("Product.Description", product.description, "Description", MAX_DESCRIPTION_LENGTH),
    )
    for field, value, label, limit in limits:
        if len(value) > limit:
            return [FieldError(field, f"{label} cannot exceed {limit} characters.")]

    return validate_campuses(product.campuses, stop_at_first=True)
