from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from .models import Category, Order, OrderItem, Product


# -----------------------------
# Catalog
# -----------------------------

def get_categories(db: Session) -> List[Category]:
    return db.query(Category).order_by(Category.id).all()


def get_category(db: Session, category_id: int) -> Optional[Category]:
    return db.query(Category).filter(Category.id == category_id).first()


def create_category(db: Session, category_data: dict) -> Category:
    name = (category_data.get("name") or "").strip()
    if not name:
        raise ValueError("name_required")

    db_category = Category(**{**category_data, "name": name})
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


def get_products(db: Session, category_id: Optional[int] = None, skip: int = 0, limit: int = 100) -> List[Product]:
    query = db.query(Product)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.id).offset(skip).limit(limit).all()


def get_product(db: Session, product_id: int) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()


def product_exists(db: Session, product_id: int) -> bool:
    return db.execute(select(Product.id).where(Product.id == product_id)).first() is not None


def create_product(db: Session, product_data: dict) -> Product:
    name = (product_data.get("name") or "").strip()
    if not name:
        raise ValueError("name_required")

    if get_category(db, product_data["category_id"]) is None:
        raise LookupError(f"category_not_found:{product_data['category_id']}")

    db_product = Product(**{**product_data, "name": name})
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product


# -----------------------------
# Order store
# These statements never commit; the caller owns the transaction.
# -----------------------------

def decrement_stock(db: Session, product_id: int, quantity: int) -> bool:
    """Conditionally subtract ``quantity`` from a product's stock.

    Returns False when no row matched, i.e. the product is missing or holds
    fewer than ``quantity`` units. The row is left untouched in that case.
    """
    result = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def insert_order(db: Session, customer_name: str) -> Order:
    db_order = Order(customer_name=customer_name)
    db.add(db_order)
    db.flush()  # Get order ID without committing
    return db_order


def insert_order_item(db: Session, order_id: int, product_id: int, quantity: int, price: Decimal) -> OrderItem:
    order_item = OrderItem(order_id=order_id, product_id=product_id, quantity=quantity, price=price)
    db.add(order_item)
    return order_item


def get_orders(db: Session, skip: int = 0, limit: Optional[int] = None) -> List[Order]:
    query = db.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_order(db: Session, order_id: int) -> Optional[Order]:
    return db.query(Order).filter(Order.id == order_id).first()


def get_order_items_with_product(db: Session, order_ids: Sequence[int]) -> Dict[int, List[dict]]:
    """Return ``{order_id: [item, ...]}`` with each item joined to its product name."""
    grouped: Dict[int, List[dict]] = {order_id: [] for order_id in order_ids}
    if not order_ids:
        return grouped

    rows = db.execute(
        select(
            OrderItem.order_id,
            OrderItem.product_id,
            OrderItem.quantity,
            OrderItem.price,
            Product.name,
        )
        .join(Product, OrderItem.product_id == Product.id)
        .where(OrderItem.order_id.in_(list(order_ids)))
        .order_by(OrderItem.order_id, OrderItem.id)
    ).all()

    for order_id, product_id, quantity, price, product_name in rows:
        grouped[order_id].append(
            {
                "product_id": product_id,
                "quantity": quantity,
                "price": price,
                "product_name": product_name,
            }
        )
    return grouped
