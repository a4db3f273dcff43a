from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status

from .. import schemas
from ..models import MAX_ID
from ..order_engine import OrderEngine

router = APIRouter(prefix="/api/orders", tags=["Orders"])


def get_order_engine(request: Request) -> OrderEngine:
    return request.app.state.order_engine


@router.post(
    "",
    response_model=schemas.OrderCreated,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": schemas.ErrorOut},
        404: {"model": schemas.ErrorOut},
        409: {"model": schemas.ErrorOut},
        500: {"model": schemas.ErrorOut},
        503: {"model": schemas.ErrorOut},
    },
)
def place_order(body: schemas.OrderCreate, engine: OrderEngine = Depends(get_order_engine)):
    """Create an order and decrement stock for every item, all or nothing."""
    order_id = engine.place_order(body.customer_name, [item.model_dump() for item in body.items])
    return {"order_id": order_id}


@router.get("", response_model=List[schemas.OrderOut], responses={503: {"model": schemas.ErrorOut}})
def list_orders(
    skip: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    engine: OrderEngine = Depends(get_order_engine),
):
    """Orders newest first, with their items and product names."""
    return engine.list_orders(skip=skip, limit=limit)


@router.get("/{order_id}", response_model=schemas.OrderOut, responses={404: {"model": schemas.ErrorOut}})
def get_order(order_id: int = Path(..., gt=0, le=MAX_ID), engine: OrderEngine = Depends(get_order_engine)):
    return engine.get_order(order_id)
