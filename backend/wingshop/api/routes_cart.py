import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from wingshop.db import get_db
from wingshop.repositories.storage_repo import SqlStorage
from wingshop.schemas.cart_schema import CartLine
from wingshop.services.cart_service import UNSET, CartStore

router = APIRouter(prefix="/api/cart", tags=["cart"])

CART_COOKIE = "cart_uuid"


class AddItemIn(BaseModel):
    item: CartLine
    qty: int = Field(1, ge=1)


class SetQtyIn(BaseModel):
    product_id: str = Field(..., alias="productId")
    qty: int
    price_id: Optional[str] = Field(None, alias="priceId")
    all_variants: bool = False


class RemoveItemIn(BaseModel):
    product_id: str = Field(..., alias="productId")
    price_id: Optional[str] = Field(None, alias="priceId")
    all_variants: bool = False


def _client_id(request: Request, response: Response) -> str:
    cid = request.cookies.get(CART_COOKIE)
    if not cid:
        cid = uuid.uuid4().hex
    response.set_cookie(CART_COOKIE, cid, httponly=False, samesite="lax")
    return cid


def _store(request: Request, response: Response, db: Session) -> CartStore:
    return CartStore(SqlStorage(db, _client_id(request, response), scope="local"))


def _summary(cart: CartStore) -> dict:
    return {"cart_uuid": cart.storage.client_id, **cart.summary()}


@router.get("", summary="Get cart")
def get_cart(request: Request, response: Response, db: Session = Depends(get_db)):
    return _summary(_store(request, response, db))


@router.post("/items", summary="Add item to cart")
def add_item(payload: AddItemIn, request: Request, response: Response, db: Session = Depends(get_db)):
    cart = _store(request, response, db)
    try:
        cart.add(payload.item, payload.qty)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _summary(cart)


@router.patch("/items", summary="Set line quantity")
def set_qty(payload: SetQtyIn, request: Request, response: Response, db: Session = Depends(get_db)):
    cart = _store(request, response, db)
    cart.set_qty(payload.product_id, payload.qty, UNSET if payload.all_variants else payload.price_id)
    return _summary(cart)


@router.delete("/items", summary="Remove item")
def remove_item(payload: RemoveItemIn, request: Request, response: Response, db: Session = Depends(get_db)):
    cart = _store(request, response, db)
    cart.remove(payload.product_id, UNSET if payload.all_variants else payload.price_id)
    return _summary(cart)


@router.delete("", summary="Clear cart")
def clear_cart(request: Request, response: Response, db: Session = Depends(get_db)):
    cart = _store(request, response, db)
    cart.clear()
    return _summary(cart)
