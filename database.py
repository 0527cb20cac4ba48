"""
MongoDB connection and document helpers.

`db` is None when DATABASE_URL is not configured. Every helper takes the
database to use and falls back to `db`.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel
from pymongo import MongoClient

from config import settings
from errors import PersistenceError

_client: Optional[MongoClient] = None
db = None

if settings.database_url:
    _client = MongoClient(settings.database_url)
    db = _client[settings.database_name]


def _resolve(target):
    target = target if target is not None else db
    if target is None:
        raise PersistenceError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    return target


def to_str_id(doc: Dict[str, Any]) -> Dict[str, Any]:
    if not doc:
        return doc
    d = dict(doc)
    if d.get("_id"):
        d["id"] = str(d.pop("_id"))
    d.pop("created_at", None)
    d.pop("updated_at", None)
    return d


def _as_document(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        doc = data.model_dump(mode="json", by_alias=True)
    else:
        doc = dict(data)
    if "id" in doc:
        doc["_id"] = doc.pop("id")
    return doc


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]], target=None) -> str:
    """Insert a document and return its id as a string."""
    doc = _as_document(data)
    now = datetime.now(timezone.utc)
    doc["created_at"] = now
    doc["updated_at"] = now
    result = _resolve(target)[collection_name].insert_one(doc)
    return str(result.inserted_id)


def replace_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]], target=None) -> str:
    """Insert or fully replace the document with the same id."""
    doc = _as_document(data)
    doc["updated_at"] = datetime.now(timezone.utc)
    _resolve(target)[collection_name].replace_one({"_id": doc["_id"]}, doc, upsert=True)
    return str(doc["_id"])


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    sort: Optional[List[Tuple[str, int]]] = None,
    target=None,
) -> List[Dict[str, Any]]:
    cursor = _resolve(target)[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return [to_str_id(d) for d in cursor]
