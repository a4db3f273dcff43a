"""Typed failures raised by the catalog and the order transaction engine."""

from typing import Optional


class ShopError(Exception):
    """Base class. ``kind`` is the stable name reported to API callers."""

    kind = "ShopError"

    def __init__(self, message: str, *, product_id: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.product_id = product_id

    def to_dict(self) -> dict:
        body = {"error": self.kind, "message": self.message}
        if self.product_id is not None:
            body["product_id"] = self.product_id
        return body


class InvalidOrder(ShopError):
    kind = "InvalidOrder"


class InvalidItem(InvalidOrder):
    kind = "InvalidItem"


class ProductNotFound(ShopError):
    kind = "ProductNotFound"


class InvalidCatalogEntry(ShopError):
    kind = "InvalidCatalogEntry"


class DuplicateCategory(ShopError):
    kind = "DuplicateCategory"


class CategoryNotFound(ShopError):
    kind = "CategoryNotFound"


class OrderNotFound(ShopError):
    kind = "OrderNotFound"


class InsufficientStock(ShopError):
    kind = "InsufficientStock"


class StoreUnavailable(ShopError):
    kind = "StoreUnavailable"


class TransactionAborted(ShopError):
    """Commit failed after every statement was applied; the transaction was rolled back."""

    kind = "TransactionAborted"
