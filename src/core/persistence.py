from __future__ import annotations

import copy
import json
import logging
import os
import threading
from datetime import datetime, timezone
from json import JSONDecodeError
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from uuid import uuid4

from .models import Document, DocumentList

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Collections / indexes
# ---------------------------------------------------------------------------
CATEGORIES = "categories"
PRODUCTS = "products"
USERS = "users"
CARTS = "carts"

# Indici univoci "sparse": i valori None non partecipano al vincolo.
DEFAULT_UNIQUE_INDEXES: Dict[str, Tuple[str, ...]] = {
    CATEGORIES: ("name",),
    USERS: ("email", "phoneNumber"),
    CARTS: ("userId",),
}

SortSpec = Sequence[Tuple[str, int]]


class DocumentNotFound(LookupError):
    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"{collection}: document {doc_id!r} not found")
        self.collection = collection
        self.doc_id = doc_id


class DuplicateKeyError(ValueError):
    def __init__(self, collection: str, field: str, value: Any) -> None:
        super().__init__(f"{collection}: duplicate value for unique field {field!r}: {value!r}")
        self.collection = collection
        self.field = field
        self.value = value


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Low level
# ---------------------------------------------------------------------------


def _ensure_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _write_json_atomic(path: Path, data: Any, indent: int = 2) -> None:
    _ensure_dir(path)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=indent)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, path)


def _load_json_list(path: Path) -> DocumentList:
    if not path.exists():
        return []
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except JSONDecodeError:
        LOGGER.warning("Invalid / corrupt collection JSON at %s", path)
        return []
    except OSError as e:
        LOGGER.warning("Error reading collection file %s: %s", path, e)
        return []
    if not isinstance(raw, list):
        LOGGER.warning("Invalid structure in collection JSON (expected list) at %s", path)
        return []
    return [item for item in raw if isinstance(item, dict)]


def _matches(doc: Mapping[str, Any], flt: Optional[Mapping[str, Any]]) -> bool:
    if not flt:
        return True
    for key, expected in flt.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in expected):
                return False
            continue
        if doc.get(key) != expected:
            return False
    return True


def _sort_key(field: str):
    def key(doc: Mapping[str, Any]):
        value = doc.get(field)
        # None in fondo, come gli ordinamenti per campo mancante
        return (value is None, value if value is not None else 0)

    return key


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class DocumentStore:
    """
    Document store minimale su file JSON (una lista di documenti per collection).

    - ogni documento ha `_id`, `createdAt`, `updatedAt`
    - filtri per uguaglianza (piu' `$or` di sotto-filtri)
    - vincoli univoci per campo dichiarati per collection
    - scritture atomiche (tmp + os.replace) sotto lock
    """

    def __init__(
        self,
        data_dir: Optional[str] = None,
        unique_indexes: Optional[Dict[str, Tuple[str, ...]]] = None,
    ) -> None:
        self._dir = Path(data_dir or os.getenv("SHOP_DATA_DIR", "data"))
        self._unique = dict(DEFAULT_UNIQUE_INDEXES if unique_indexes is None else unique_indexes)
        self._lock = threading.RLock()

    @property
    def data_dir(self) -> Path:
        return self._dir

    def _path(self, collection: str) -> Path:
        return self._dir / f"{collection}.json"

    def _load(self, collection: str) -> DocumentList:
        return _load_json_list(self._path(collection))

    def _save(self, collection: str, docs: DocumentList) -> None:
        _write_json_atomic(self._path(collection), docs)

    def _check_unique(self, collection: str, docs: Iterable[Document], candidate: Document) -> None:
        for field in self._unique.get(collection, ()):
            value = candidate.get(field)
            if value is None:
                continue
            for other in docs:
                if other.get("_id") != candidate.get("_id") and other.get(field) == value:
                    raise DuplicateKeyError(collection, field, value)

    # -- read -----------------------------------------------------------------

    def find(
        self,
        collection: str,
        flt: Optional[Mapping[str, Any]] = None,
        sort: Optional[SortSpec] = None,
    ) -> DocumentList:
        with self._lock:
            out = [copy.deepcopy(d) for d in self._load(collection) if _matches(d, flt)]
        # sort stabile: si applicano le chiavi dall'ultima alla prima
        for field, direction in reversed(list(sort or ())):
            out.sort(key=_sort_key(field), reverse=direction < 0)
        return out

    def find_one(self, collection: str, flt: Mapping[str, Any]) -> Optional[Document]:
        with self._lock:
            for doc in self._load(collection):
                if _matches(doc, flt):
                    return copy.deepcopy(doc)
        return None

    def find_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        return self.find_one(collection, {"_id": doc_id})

    def count(self, collection: str, flt: Optional[Mapping[str, Any]] = None) -> int:
        with self._lock:
            return sum(1 for d in self._load(collection) if _matches(d, flt))

    # -- write ----------------------------------------------------------------

    def create(self, collection: str, doc: Mapping[str, Any]) -> Document:
        now = _now_iso()
        new_doc: Document = copy.deepcopy(dict(doc))
        new_doc["_id"] = new_doc.get("_id") or uuid4().hex
        new_doc["createdAt"] = now
        new_doc["updatedAt"] = now
        with self._lock:
            docs = self._load(collection)
            self._check_unique(collection, docs, new_doc)
            docs.append(new_doc)
            self._save(collection, docs)
        return copy.deepcopy(new_doc)

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> Document:
        """Aggiorna solo i campi passati e salva. Solleva DocumentNotFound."""
        with self._lock:
            docs = self._load(collection)
            for idx, doc in enumerate(docs):
                if doc.get("_id") != doc_id:
                    continue
                updated = dict(doc)
                for key, value in fields.items():
                    if key in ("_id", "createdAt"):
                        continue
                    updated[key] = copy.deepcopy(value)
                updated["updatedAt"] = _now_iso()
                self._check_unique(collection, docs, updated)
                docs[idx] = updated
                self._save(collection, docs)
                return copy.deepcopy(updated)
        raise DocumentNotFound(collection, doc_id)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            docs = self._load(collection)
            kept = [d for d in docs if d.get("_id") != doc_id]
            if len(kept) == len(docs):
                return False
            self._save(collection, kept)
        return True

    def ping(self) -> bool:
        """True se la directory dati e' utilizzabile."""
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            LOGGER.warning("Data dir %s not usable: %s", self._dir, e)
            return False
        return os.access(self._dir, os.W_OK)


__all__ = [
    "CATEGORIES",
    "PRODUCTS",
    "USERS",
    "CARTS",
    "DocumentStore",
    "DocumentNotFound",
    "DuplicateKeyError",
]
