"""Flask app exposing the catalog pages and the products API.

HTML views are not part of this package; every page answers with the JSON
document a template would render from.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any, Optional

from flask import (
    Blueprint,
    Flask,
    current_app,
    flash,
    get_flashed_messages,
    jsonify,
    redirect,
    request,
    url_for,
)
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from werkzeug.datastructures import MultiDict

from contoso_crafts.config import MAX_UPLOAD_BYTES, resolve_web_root
from contoso_crafts.data.models import Product, parse_university_type
from contoso_crafts.data.product_store import ProductStore
from contoso_crafts.pages.handlers import (
    CreatePage,
    DeletePage,
    IndexPage,
    PageResult,
    ReadPage,
    Redirect,
    UpdatePage,
)
from contoso_crafts.uploads.workflow import ImageUploadWorkflow, UploadedFile

logger = logging.getLogger(__name__)

EXTENSION_KEY = "contoso_crafts"
_TRUE_VALUES = {"true", "on", "1", "yes"}

catalog = Blueprint("catalog", __name__)


class RatingRequest(BaseModel):
    """Body of ``PATCH /products``."""

    model_config = ConfigDict(populate_by_name=True)

    product_id: Optional[str] = Field(default=None, alias="productId")
    rating: int = 0


# ---------- APP FACTORY ----------


def create_app(
    config: dict[str, Any] | None = None,
    store: ProductStore | None = None,
    uploads: ImageUploadWorkflow | None = None,
) -> Flask:
    """Build the Flask app.

    Args:
        config: Merged configuration (see :func:`contoso_crafts.config.load_config`).
        store: Store to use instead of one built from ``web_root``.
        uploads: Upload workflow to use instead of the default one.
    """
    config = config or {}
    web_root = resolve_web_root(config)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.get("secret_key") or secrets.token_hex(16)
    # Leave headroom so oversized images reach the workflow's own size check
    app.config["MAX_CONTENT_LENGTH"] = 4 * MAX_UPLOAD_BYTES

    app.extensions[EXTENSION_KEY] = {
        "store": store if store is not None else ProductStore(web_root),
        "uploads": uploads if uploads is not None else ImageUploadWorkflow(web_root),
    }
    app.register_blueprint(catalog)

    logger.info("Catalog app ready", extra={"web_root": str(web_root)})
    return app


def _store() -> ProductStore:
    return current_app.extensions[EXTENSION_KEY]["store"]


def _uploads() -> ImageUploadWorkflow:
    return current_app.extensions[EXTENSION_KEY]["uploads"]


# ---------- FORM BINDING ----------


def product_from_form(form: MultiDict, product_id: str | None = None) -> Product:
    """Bind a submitted product form; unparseable numbers become 0."""
    try:
        departments = int(form.get("numberOfDepartments", "1"))
    except (TypeError, ValueError):
        departments = 0

    product = Product(
        title=form.get("title", ""),
        description=form.get("description", ""),
        url=form.get("url", ""),
        image=form.get("img", form.get("image", "")),
        location=form.get("location", ""),
        maker=form.get("maker", ""),
        graduate_degree=form.getlist("graduateDegree"),
        under_graduate_degree=form.getlist("underGraduateDegree"),
        campuses=form.getlist("campuses"),
        type_of_university=parse_university_type(form.get("typeOfUniversity")),
        number_of_departments=departments,
        has_online_programs=form.get("hasOnlinePrograms", "").lower() in _TRUE_VALUES,
    )
    if product_id is not None:
        product.id = product_id
    return product


def uploaded_file(field_name: str) -> UploadedFile | None:
    """Read an uploaded file from the current request, if one was sent."""
    storage = request.files.get(field_name)
    if storage is None:
        return None
    return UploadedFile(
        filename=storage.filename or "",
        content=storage.read(),
        content_type=storage.mimetype or "",
    )


def _respond(result: PageResult):
    if isinstance(result, Redirect):
        if result.message:
            flash(result.message)
        return redirect(url_for("catalog.product_index"), code=303)

    body = {
        "product": result.product.to_json_dict() if result.product else None,
        "errors": [error.to_dict() for error in result.errors],
    }
    return jsonify(body), (200 if result.is_valid else 400)


def _listing(products: list[Product]) -> dict[str, Any]:
    return {
        "products": [
            {**p.to_json_dict(), "flagClass": p.type_of_university.flag_class}
            for p in products
        ],
        "messages": get_flashed_messages(),
    }


# ---------- PAGES ----------


@catalog.route("/", methods=["GET"])
def home():
    return jsonify(_listing(IndexPage(_store()).get()))


@catalog.route("/product", methods=["GET"])
def product_index():
    products = IndexPage(_store()).get(
        search_term=request.args.get("searchTerm"),
        type_filter=request.args.get("typeFilter"),
    )
    return jsonify(_listing(products))


@catalog.route("/product/create", methods=["GET", "POST"])
def product_create():
    page = CreatePage(_store(), _uploads())
    if request.method == "GET":
        return _respond(page.get())
    return _respond(page.post(product_from_form(request.form)))


@catalog.route("/product/create/upload-image", methods=["POST"])
def product_upload_image():
    page = CreatePage(_store(), _uploads())
    result = page.upload_image(uploaded_file("image"), request.form.get("title"))
    return jsonify(result.to_dict())


@catalog.route("/product/create/delete-image", methods=["POST"])
def product_delete_image():
    page = CreatePage(_store(), _uploads())
    result = page.delete_image(request.form.get("imagePath"))
    return jsonify(result.to_dict())


@catalog.route("/product/<product_id>", methods=["GET"])
def product_read(product_id: str):
    return _respond(ReadPage(_store()).get(product_id))


@catalog.route("/product/<product_id>/update", methods=["GET", "POST"])
def product_update(product_id: str):
    page = UpdatePage(_store(), _uploads())
    if request.method == "GET":
        return _respond(page.get(product_id))
    product = product_from_form(request.form, product_id=product_id)
    return _respond(page.post(product, uploaded_file("upload")))


@catalog.route("/product/<product_id>/delete", methods=["GET", "POST"])
def product_delete(product_id: str):
    page = DeletePage(_store())
    if request.method == "GET":
        return _respond(page.get(product_id))
    return _respond(page.post(product_id))


# ---------- PRODUCTS API ----------


@catalog.route("/products", methods=["GET"])
def products_list():
    return jsonify([p.to_json_dict() for p in _store().get_all() if p is not None])


@catalog.route("/products", methods=["PATCH"])
def products_rate():
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({"error": "Request body is required."}), 400

    try:
        rating_request = RatingRequest.model_validate(payload)
    except ValidationError:
        return jsonify({"error": "Invalid rating request."}), 400

    if rating_request.product_id is None or not rating_request.product_id.strip():
        return jsonify({"error": "ProductId is required."}), 400

    recorded = _store().add_rating(rating_request.product_id, rating_request.rating)
    return jsonify({"success": recorded})
