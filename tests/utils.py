"""Helpers shared by the test modules."""

from shop_service.models import Order, OrderItem, Product


def stock_of(session_factory, product_id):
    session = session_factory()
    try:
        return session.get(Product, product_id).stock
    finally:
        session.close()


def count_rows(session_factory):
    """Return ``(orders, order_items)`` row counts."""
    session = session_factory()
    try:
        return session.query(Order).count(), session.query(OrderItem).count()
    finally:
        session.close()
