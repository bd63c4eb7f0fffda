"""MongoDB access: connection lifecycle, document helpers and reference population."""

import os
from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId
from fastapi import Request
from pydantic import ValidationError as SchemaError
from pymongo import MongoClient
from pymongo.database import Database

from errors import StoreError, store_errors
from schemas import DOCUMENT_SCHEMAS

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://127.0.0.1:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "marketplace_db")


def connect(url: str = DATABASE_URL, name: str = DATABASE_NAME) -> Database:
    client = MongoClient(url, serverSelectionTimeoutMS=5000)
    return client[name]


def close(db: Optional[Database]) -> None:
    if db is not None:
        db.client.close()


def get_db(request: Request) -> Database:
    """FastAPI dependency returning the handle opened by the application lifespan."""
    db = getattr(request.app.state, "db", None)
    if db is None:
        # reads report store failures as 500, writes as 400
        raise StoreError("Database not available", 500 if request.method == "GET" else 400)
    return db


def to_object_id(id_str: str) -> ObjectId:
    if not ObjectId.is_valid(id_str):
        raise StoreError(f'Cast to ObjectId failed for value "{id_str}"', 400)
    return ObjectId(id_str)


def sanitize(doc: Optional[Dict]) -> Optional[Dict]:
    """Return a JSON-ready copy: _id becomes id and ObjectIds become strings."""
    if not doc:
        return doc
    d = {}
    for key, value in doc.items():
        if key == "_id":
            d["id"] = str(value)
        elif isinstance(value, ObjectId):
            d[key] = str(value)
        elif isinstance(value, dict):
            d[key] = sanitize(value)
        else:
            d[key] = value
    return d


def _schema_message(collection_name: str, exc: SchemaError) -> str:
    details = ", ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return f"{collection_name} validation failed: {details}"


def create_document(db: Database, collection_name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate data against the collection schema, insert it and return the stored record."""
    schema = DOCUMENT_SCHEMAS[collection_name]
    try:
        fields = schema.model_validate(data).model_dump(by_alias=True)
    except SchemaError as exc:
        raise StoreError(_schema_message(collection_name, exc), 400) from exc
    document = {"_id": ObjectId(), **fields}
    with store_errors(400):
        db[collection_name].insert_one(document)
    return sanitize(document)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    projection: Optional[Dict[str, int]] = None,
) -> List[Dict[str, Any]]:
    return list(db[collection_name].find(filter_dict or {}, projection))


def populate(
    docs: List[Dict[str, Any]],
    db: Database,
    path: str,
    collection_name: str,
    projection: Optional[Dict[str, int]] = None,
    then: Optional[Callable[[List[Dict[str, Any]]], List[Dict[str, Any]]]] = None,
) -> List[Dict[str, Any]]:
    """
    Replace the reference stored under `path` with the document it points to.

    The referenced documents are fetched in one query. A reference that does not
    resolve becomes None. `then` receives the fetched documents so that they can
    be populated in turn. The input documents are not modified.
    """
    ids = list({doc[path] for doc in docs if doc.get(path) is not None})
    targets = get_documents(db, collection_name, {"_id": {"$in": ids}}, projection) if ids else []
    if then is not None and targets:
        targets = then(targets)
    by_id = {target["_id"]: target for target in targets}
    return [{**doc, path: by_id.get(doc.get(path))} for doc in docs]
