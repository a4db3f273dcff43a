"""Order transaction engine.

Places orders as one all-or-nothing unit (stock decrements, the order row
and its line items) and reads orders back joined with product details.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from . import crud
from .exceptions import (
    InsufficientStock,
    InvalidItem,
    InvalidOrder,
    OrderNotFound,
    ProductNotFound,
    ShopError,
    StoreUnavailable,
    TransactionAborted,
)
from .logger import logger
from .models import MAX_ID, MAX_PRICE


CENT = Decimal("0.01")


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _validate_customer_name(customer_name: Any) -> str:
    if not isinstance(customer_name, str) or not customer_name.strip():
        raise InvalidOrder("customer_name must be a non-empty string")
    return customer_name.strip()


def _validate_item(item: Any, position: int) -> Dict[str, Any]:
    product_id = _field(item, "product_id")
    quantity = _field(item, "quantity")
    price = _field(item, "price")

    if not isinstance(product_id, int) or isinstance(product_id, bool) or not 0 < product_id <= MAX_ID:
        raise InvalidItem(f"item {position}: product_id must be an integer between 1 and {MAX_ID}")
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise InvalidItem(f"item {position}: quantity must be a positive integer", product_id=product_id)

    try:
        unit_price = Decimal(str(price))
    except (InvalidOperation, ValueError):
        raise InvalidItem(f"item {position}: price must be a number", product_id=product_id)
    if not unit_price.is_finite() or unit_price < 0:
        raise InvalidItem(f"item {position}: price must be a non-negative number", product_id=product_id)
    # NUMERIC(10, 2): anything wider would be rounded or overflow on insert
    if unit_price >= MAX_PRICE or unit_price.quantize(CENT) != unit_price:
        raise InvalidItem(
            f"item {position}: price must have at most 8 integer digits and 2 decimal places",
            product_id=product_id,
        )

    return {"product_id": product_id, "quantity": quantity, "price": unit_price}


def _merge_quantities(lines: Sequence[Dict[str, Any]]) -> Dict[int, int]:
    merged: Dict[int, int] = {}
    for line in lines:
        merged[line["product_id"]] = merged.get(line["product_id"], 0) + line["quantity"]
    return merged


class OrderEngine:
    """Runs order placement and order reads against an injected session factory.

    Each call opens its own session and closes it before returning, whatever
    the outcome, so one engine can serve concurrent requests.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _open_session(self) -> Session:
        try:
            return self._session_factory()
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"could not open a database session: {e}") from e

    def place_order(self, customer_name: str, items: Sequence[Any]) -> int:
        """Create an order with its line items and decrement stock atomically.

        Args:
            customer_name: Name recorded on the order.
            items: ``{product_id, quantity, price}`` mappings (or objects with
                those attributes). ``price`` is stored as given.

        Returns:
            int: The new order id.

        Raises:
            InvalidOrder / InvalidItem: Bad input; nothing was written.
            ProductNotFound: A referenced product does not exist.
            InsufficientStock: A product holds fewer units than requested.
            StoreUnavailable: The database could not be reached or a statement failed.
            TransactionAborted: The commit failed.
        """
        customer_name = _validate_customer_name(customer_name)
        if not items:
            raise InvalidOrder("an order needs at least one item")
        lines = [_validate_item(item, position) for position, item in enumerate(items)]

        db = self._open_session()
        try:
            try:
                order_id = self._write_order(db, customer_name, lines)
            except SQLAlchemyError as e:
                raise StoreUnavailable(f"order could not be written: {e}") from e

            try:
                db.commit()
            except SQLAlchemyError as e:
                raise TransactionAborted(f"order commit failed: {e}") from e
        except ShopError as e:
            self._rollback(db)
            logger.warning("Order for {!r} rolled back: {}: {}", customer_name, e.kind, e.message)
            raise
        except Exception:
            self._rollback(db)
            logger.exception("Unexpected failure while placing order for {!r}", customer_name)
            raise
        finally:
            db.close()

        logger.info("Order {} placed for {!r} with {} item(s)", order_id, customer_name, len(lines))
        return order_id

    def _write_order(self, db: Session, customer_name: str, lines: List[Dict[str, Any]]) -> int:
        # Lock rows in a stable order to avoid deadlocks
        merged = _merge_quantities(lines)
        for product_id in sorted(merged):
            quantity = merged[product_id]
            if crud.decrement_stock(db, product_id, quantity):
                continue
            if not crud.product_exists(db, product_id):
                raise ProductNotFound(f"Product with id {product_id} not found", product_id=product_id)
            raise InsufficientStock(
                f"Insufficient stock for product {product_id}. Requested: {quantity}",
                product_id=product_id,
            )

        db_order = crud.insert_order(db, customer_name)
        for line in lines:
            crud.insert_order_item(db, db_order.id, line["product_id"], line["quantity"], line["price"])
        db.flush()
        return db_order.id

    @staticmethod
    def _rollback(db: Session) -> None:
        try:
            db.rollback()
        except SQLAlchemyError as e:
            # the connection is discarded by close() anyway
            logger.error("Rollback failed: {}", e)

    def list_orders(self, skip: int = 0, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Return orders newest first, each with its items joined to product names.

        Raises:
            StoreUnavailable: Any read failed; no partial list is returned.
        """
        db = self._open_session()
        try:
            orders = crud.get_orders(db, skip=skip, limit=limit)
            items = crud.get_order_items_with_product(db, [o.id for o in orders])
            return [self._to_dict(o, items[o.id]) for o in orders]
        except SQLAlchemyError as e:
            logger.error("Listing orders failed: {}", e)
            raise StoreUnavailable(f"orders could not be read: {e}") from e
        finally:
            db.close()

    def get_order(self, order_id: int) -> Dict[str, Any]:
        if not 0 < order_id <= MAX_ID:
            raise OrderNotFound(f"Order with id {order_id} not found")

        db = self._open_session()
        try:
            db_order = crud.get_order(db, order_id)
            if db_order is None:
                raise OrderNotFound(f"Order with id {order_id} not found")
            items = crud.get_order_items_with_product(db, [db_order.id])
            return self._to_dict(db_order, items[db_order.id])
        except SQLAlchemyError as e:
            logger.error("Reading order {} failed: {}", order_id, e)
            raise StoreUnavailable(f"order could not be read: {e}") from e
        finally:
            db.close()

    @staticmethod
    def _to_dict(db_order, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "id": db_order.id,
            "customer_name": db_order.customer_name,
            "created_at": db_order.created_at,
            "items": items,
        }
