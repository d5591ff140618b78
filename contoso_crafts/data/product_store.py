"""JSON-file-backed product store.

The whole catalog lives in ``<web_root>/data/products.json`` as one JSON
array. Every mutation re-reads the file, changes the list in memory and
rewrites the entire file. Writers in other processes are not
coordinated: the last full-file write wins.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from contoso_crafts.data.models import UPDATABLE_FIELDS, Product
from contoso_crafts.utils.file_utils import atomic_write, is_local_image_path, resolve_web_path

logger = logging.getLogger(__name__)

_PRODUCT_LIST = TypeAdapter(list[Optional[Product]])


class LocalFileSystem:
    """Filesystem calls used by :class:`ProductStore`.

    Each method is a seam: tests subclass this (or pass a mock) to
    simulate a file sitting where a directory belongs, a locked file,
    a full disk, and so on.
    """

    def file_exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def directory_exists(self, path: Path) -> bool:
        return Path(path).is_dir()

    def create_directory(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: Path, contents: str) -> None:
        atomic_write(Path(path), contents)

    def delete_file(self, path: Path) -> None:
        """Delete *path*; missing, locked or protected files are ignored."""
        try:
            Path(path).unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not delete %s: %s", path, exc)


class ProductStore:
    """Read/write access to the product catalog file.

    Construction guarantees ``images/``, ``data/`` and an (possibly empty)
    ``data/products.json`` array exist under *web_root*. All public
    methods swallow expected I/O and parse faults: reads degrade to an
    empty list, writes are dropped after logging a warning.

    Mutations from the same instance are serialized with a lock; this
    does not protect against other processes.
    """

    def __init__(
        self,
        web_root: Path | str | None = None,
        fs: LocalFileSystem | None = None,
    ) -> None:
        if web_root is None or not str(web_root).strip():
            web_root = Path.cwd() / "wwwroot"
        self.web_root = Path(web_root)
        self.fs = fs if fs is not None else LocalFileSystem()
        self._lock = threading.RLock()
        self._ensure_layout()

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def images_dir(self) -> Path:
        return self.web_root / "images"

    @property
    def json_path(self) -> Path:
        return self.web_root / "data" / "products.json"

    def get_data_directory(self) -> Path | None:
        """Directory holding the JSON file; None aborts every save."""
        return self.json_path.parent

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_layout(self) -> None:
        if not self.fs.directory_exists(self.images_dir):
            self.fs.create_directory(self.images_dir)

        self._ensure_data_directory(self.json_path.parent)

        if not self.fs.file_exists(self.json_path):
            self._attempt_write(self.json_path, "[]")

    def _ensure_data_directory(self, data_dir: Path) -> None:
        if self.fs.directory_exists(data_dir):
            return
        if self.fs.file_exists(data_dir):
            logger.warning("Replacing file %s with a directory", data_dir)
            self.fs.delete_file(data_dir)
        self.fs.create_directory(data_dir)

    def _attempt_write(self, path: Path, contents: str) -> bool:
        """Write *contents*, logging and dropping any I/O fault."""
        try:
            self.fs.write_text(path, contents)
        except OSError as exc:
            logger.warning(
                "Failed to write %s, change discarded: %s", path, exc
            )
            return False
        return True

    def _save(self, products: list[Optional[Product]]) -> None:
        """Rewrite the whole catalog file (caller must hold *_lock*)."""
        data_dir = self.get_data_directory()
        if data_dir is None or not str(data_dir).strip():
            logger.warning("Data directory unavailable; skipping save")
            return

        payload = [p.to_json_dict() for p in products if p is not None]
        json_text = json.dumps(payload, indent=2, ensure_ascii=False)

        if self.fs.file_exists(self.json_path):
            self.fs.delete_file(self.json_path)

        self._ensure_data_directory(Path(data_dir))

        self._attempt_write(self.json_path, json_text)

    def _delete_local_image(self, product: Product) -> None:
        image = product.image
        if not image or not image.strip():
            return
        # Remote URLs in legacy rows are left alone
        if not is_local_image_path(image):
            return

        physical = resolve_web_path(self.web_root, image)
        if physical is None:
            logger.warning("Ignoring image path outside images/: %s", image)
            return

        if self.fs.file_exists(physical):
            self.fs.delete_file(physical)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_all(self) -> list[Optional[Product]]:
        """Return every record in file order.

        Missing, blank, ``null``, malformed (including nesting too deep to
        decode) or unreadable files all yield an empty list.
        """
        if not self.fs.file_exists(self.json_path):
            return []

        try:
            json_text = self.fs.read_text(self.json_path)
            if not json_text or not json_text.strip():
                return []

            data = json.loads(json_text)
            if data is None:
                return []

            return _PRODUCT_LIST.validate_python(data)
        except (
            json.JSONDecodeError,
            UnicodeDecodeError,
            ValidationError,
            RecursionError,
        ) as exc:
            logger.warning("Unreadable catalog %s: %s", self.json_path, exc)
            return []
        except OSError as exc:
            logger.warning("Failed to read catalog %s: %s", self.json_path, exc)
            return []

    def find(self, product_id: str | None) -> Product | None:
        """Return the record whose id equals *product_id* exactly."""
        if product_id is None or not product_id.strip():
            return None
        for candidate in self.get_all():
            if candidate is None or candidate.id is None:
                continue
            if candidate.id == product_id:
                return candidate
        return None

    def create(self, product: Product | None) -> None:
        """Append *product* to the catalog. ``None`` is ignored."""
        if product is None:
            return

        with self._lock:
            products = self.get_all()
            products.append(product)
            self._save(products)
        logger.info("Created product %s", product.id)

    def update(self, product: Product | None) -> bool:
        """Copy the editable fields of *product* onto the stored record.

        The match on id is exact (case-sensitive). Fields outside
        :data:`UPDATABLE_FIELDS` (id, maker, ratings) keep their stored
        values.

        Returns:
            True if a record was updated, False if *product* is None or
            no record has its id.
        """
        if product is None:
            return False

        with self._lock:
            products = self.get_all()
            existing = next(
                (
                    p
                    for p in products
                    if p is not None and p.id is not None and p.id == product.id
                ),
                None,
            )
            if existing is None:
                return False

            for field_name in UPDATABLE_FIELDS:
                setattr(existing, field_name, getattr(product, field_name))

            self._save(products)
        logger.info("Updated product %s", product.id)
        return True

    def delete(self, product_id: str | None) -> None:
        """Remove the record matching *product_id*, ignoring case.

        A local ``/images/...`` file referenced by the record is deleted
        too. Blank or unknown ids are a no-op.
        """
        if product_id is None or not product_id.strip():
            return

        wanted = product_id.casefold()
        with self._lock:
            products = self.get_all()
            target = next(
                (
                    p
                    for p in products
                    if p is not None and p.id is not None and p.id.casefold() == wanted
                ),
                None,
            )
            if target is None:
                return

            self._delete_local_image(target)
            products = [p for p in products if p is not target]
            self._save(products)
        logger.info("Deleted product %s", target.id)

    def add_rating(self, product_id: str | None, rating: int) -> bool:
        """Append *rating* to a record's ratings.

        Returns:
            True if the rating was recorded, False for a blank id or an
            unknown record.
        """
        if product_id is None or not product_id.strip():
            return False

        with self._lock:
            products = self.get_all()
            found = next(
                (
                    p
                    for p in products
                    if p is not None and p.id is not None and p.id == product_id
                ),
                None,
            )
            if found is None:
                return False

            found.ratings = [*(found.ratings or []), rating]
            self._save(products)
        logger.info("Rated product %s with %d", product_id, rating)
        return True
