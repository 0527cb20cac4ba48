"""
Persistence gateways.

The ledger and the API only talk to a StoreGateway. MemoryGateway keeps
serialized documents in process (optionally mirrored to a JSON file) and is
the mock/test backend; MongoGateway stores them in MongoDB.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from bson.objectid import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

import database
from catalog import initial_products
from config import Settings
from errors import NotFoundError, PersistenceError
from schemas import Order, OrderStatus, Product, User

logger = logging.getLogger(__name__)

PRODUCTS = "products"
ORDERS = "orders"
SESSION = "session"


def _dump(model) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def _newest_first(orders: List[Order]) -> List[Order]:
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


class StoreGateway(ABC):
    """Storage boundary for products, orders and the session user."""

    @abstractmethod
    def new_id(self) -> str: ...

    @abstractmethod
    def seed(self) -> int:
        """Load the initial catalog when no products exist; return the product count."""

    @abstractmethod
    def list_products(self) -> List[Product]: ...

    @abstractmethod
    def get_product(self, product_id: str) -> Product:
        """Return the product or raise NotFoundError."""

    @abstractmethod
    def put_product(self, product: Product) -> Product: ...

    @abstractmethod
    def delete_product(self, product_id: str) -> None: ...

    @abstractmethod
    def list_orders(self) -> List[Order]:
        """All orders, most recent first."""

    @abstractmethod
    def put_order(self, order: Order) -> Order: ...

    @abstractmethod
    def patch_order_status(self, order_id: str, status: OrderStatus) -> Order:
        """Overwrite only the status field; NotFoundError if absent."""

    @abstractmethod
    def get_session(self) -> Optional[User]: ...

    @abstractmethod
    def set_session(self, user: Optional[User]) -> None: ...

    def describe(self) -> Dict[str, Any]:
        return {"backend": type(self).__name__}


class MemoryGateway(StoreGateway):
    """In-process store of JSON documents.

    Documents are stored serialized, so a caller mutating a returned model
    never changes stored state. With `path` set, state is loaded from and
    written back to a JSON file after every mutation.
    """

    def __init__(self, path: Optional[str] = None, seed: bool = True) -> None:
        self._lock = threading.RLock()
        self._path = Path(path) if path else None
        self._products: Dict[str, Dict[str, Any]] = {}
        self._orders: Dict[str, Dict[str, Any]] = {}
        self._session: Optional[Dict[str, Any]] = None
        if self._path and self._path.exists():
            self._load()
        elif seed:
            for p in initial_products():
                self._products[p.id] = _dump(p)

    def _load(self) -> None:
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read store file {self._path}: {exc}") from exc
        self._products = {p["id"]: p for p in data.get(PRODUCTS, [])}
        self._orders = {o["id"]: o for o in data.get(ORDERS, [])}
        self._session = data.get(SESSION)

    def _flush(self) -> None:
        if not self._path:
            return
        data = {
            PRODUCTS: list(self._products.values()),
            ORDERS: list(self._orders.values()),
            SESSION: self._session,
        }
        try:
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            with tmp.open("w", encoding="utf-8") as handle:
                json.dump(data, handle)
            tmp.replace(self._path)
        except OSError as exc:
            logger.error("Failed to write store file %s: %s", self._path, exc)
            raise PersistenceError(f"Could not write store file {self._path}: {exc}") from exc

    def _commit(self, collection: Dict[str, Dict[str, Any]], key: str, doc: Optional[Dict[str, Any]]) -> None:
        # Roll the in-memory change back if the file write fails.
        previous = collection.get(key)
        if doc is None:
            collection.pop(key, None)
        else:
            collection[key] = doc
        try:
            self._flush()
        except PersistenceError:
            if previous is None:
                collection.pop(key, None)
            else:
                collection[key] = previous
            raise

    def new_id(self) -> str:
        return uuid.uuid4().hex

    def seed(self) -> int:
        with self._lock:
            if not self._products:
                for p in initial_products():
                    self._commit(self._products, p.id, _dump(p))
            return len(self._products)

    def list_products(self) -> List[Product]:
        with self._lock:
            return [Product.model_validate(d) for d in self._products.values()]

    def get_product(self, product_id: str) -> Product:
        with self._lock:
            doc = self._products.get(product_id)
            if doc is None:
                raise NotFoundError(f"Product {product_id} not found")
            return Product.model_validate(doc)

    def put_product(self, product: Product) -> Product:
        with self._lock:
            self._commit(self._products, product.id, _dump(product))
            return Product.model_validate(self._products[product.id])

    def delete_product(self, product_id: str) -> None:
        with self._lock:
            if product_id in self._products:
                self._commit(self._products, product_id, None)

    def list_orders(self) -> List[Order]:
        with self._lock:
            return _newest_first([Order.model_validate(d) for d in self._orders.values()])

    def put_order(self, order: Order) -> Order:
        with self._lock:
            self._commit(self._orders, order.id, _dump(order))
            return Order.model_validate(self._orders[order.id])

    def patch_order_status(self, order_id: str, status: OrderStatus) -> Order:
        with self._lock:
            doc = self._orders.get(order_id)
            if doc is None:
                raise NotFoundError(f"Order {order_id} not found")
            self._commit(self._orders, order_id, {**doc, "status": OrderStatus(status).value})
            return Order.model_validate(self._orders[order_id])

    def get_session(self) -> Optional[User]:
        with self._lock:
            return User.model_validate(self._session) if self._session else None

    def set_session(self, user: Optional[User]) -> None:
        with self._lock:
            previous = self._session
            self._session = _dump(user) if user else None
            try:
                self._flush()
            except PersistenceError:
                self._session = previous
                raise

    def describe(self) -> Dict[str, Any]:
        return {
            "backend": "memory",
            "store_path": str(self._path) if self._path else None,
            "collections": {PRODUCTS: len(self._products), ORDERS: len(self._orders)},
        }


class MongoGateway(StoreGateway):
    """MongoDB-backed store; documents use the product/order id as _id."""

    def __init__(self, db=None) -> None:
        self.db = db if db is not None else database.db
        if self.db is None:
            raise PersistenceError("Database not configured. Set DATABASE_URL and DATABASE_NAME.")

    def new_id(self) -> str:
        return str(ObjectId())

    def seed(self) -> int:
        try:
            if self.db[PRODUCTS].count_documents({}) == 0:
                for p in initial_products():
                    self.put_product(p)
            return int(self.db[PRODUCTS].count_documents({}))
        except PyMongoError as exc:
            raise PersistenceError(str(exc)) from exc

    def list_products(self) -> List[Product]:
        try:
            return [Product.model_validate(d) for d in database.get_documents(PRODUCTS, target=self.db)]
        except PyMongoError as exc:
            raise PersistenceError(str(exc)) from exc

    def get_product(self, product_id: str) -> Product:
        try:
            doc = self.db[PRODUCTS].find_one({"_id": product_id})
        except PyMongoError as exc:
            raise PersistenceError(str(exc)) from exc
        if not doc:
            raise NotFoundError(f"Product {product_id} not found")
        return Product.model_validate(database.to_str_id(doc))

    def put_product(self, product: Product) -> Product:
        try:
            database.replace_document(PRODUCTS, product, target=self.db)
        except PyMongoError as exc:
            logger.error("Failed to save product %s: %s", product.id, exc)
            raise PersistenceError(str(exc)) from exc
        return product

    def delete_product(self, product_id: str) -> None:
        try:
            self.db[PRODUCTS].delete_one({"_id": product_id})
        except PyMongoError as exc:
            raise PersistenceError(str(exc)) from exc

    def list_orders(self) -> List[Order]:
        try:
            docs = database.get_documents(ORDERS, sort=[("createdAt", -1)], target=self.db)
            return [Order.model_validate(d) for d in docs]
        except PyMongoError as exc:
            raise PersistenceError(str(exc)) from exc

    def put_order(self, order: Order) -> Order:
        try:
            database.create_document(ORDERS, order, target=self.db)
        except PyMongoError as exc:
            logger.error("Failed to save order %s: %s", order.id, exc)
            raise PersistenceError(str(exc)) from exc
        return order

    def patch_order_status(self, order_id: str, status: OrderStatus) -> Order:
        try:
            doc = self.db[ORDERS].find_one_and_update(
                {"_id": order_id},
                {"$set": {"status": OrderStatus(status).value}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            raise PersistenceError(str(exc)) from exc
        if not doc:
            raise NotFoundError(f"Order {order_id} not found")
        return Order.model_validate(database.to_str_id(doc))

    def get_session(self) -> Optional[User]:
        try:
            doc = self.db[SESSION].find_one({"_id": "current"})
        except PyMongoError as exc:
            raise PersistenceError(str(exc)) from exc
        if not doc or not doc.get("user"):
            return None
        return User.model_validate(doc["user"])

    def set_session(self, user: Optional[User]) -> None:
        try:
            if user:
                self.db[SESSION].replace_one({"_id": "current"}, {"_id": "current", "user": _dump(user)}, upsert=True)
            else:
                self.db[SESSION].delete_one({"_id": "current"})
        except PyMongoError as exc:
            raise PersistenceError(str(exc)) from exc

    def describe(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {"backend": "mongo", "database_name": getattr(self.db, "name", None)}
        try:
            info["collections"] = self.db.list_collection_names()[:10]
        except PyMongoError as exc:
            info["error"] = str(exc)[:50]
        return info


def build_gateway(config: Settings) -> StoreGateway:
    if config.storage_backend == "mongo":
        return MongoGateway()
    return MemoryGateway(path=config.store_path)
