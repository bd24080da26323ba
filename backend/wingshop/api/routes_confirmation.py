from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from wingshop.api.routes_cart import CART_COOKIE
from wingshop.db import SessionLocal, get_db
from wingshop.deps import get_payment_gateway
from wingshop.repositories.storage_repo import SqlStorage
from wingshop.services.confirmation_service import (
    STATE_CONFIRMED,
    ClearCartOnArrival,
    ConfirmationService,
    cart_cookie_names,
)
from wingshop.services.order_service import OrderService

router = APIRouter(prefix="/checkout/confirmation", tags=["confirmation"])

LAST_PI_COOKIE = "last_pi"
LAST_STATUS_COOKIE = "last_redirect_status"
REDIRECT_COOKIE_MAX_AGE = 60 * 30
STORAGE_SCOPES = ("local", "session")


def _stores(db: Session, client_id: Optional[str]) -> List[SqlStorage]:
    if not client_id:
        return []
    return [SqlStorage(db, client_id, scope) for scope in STORAGE_SCOPES]


async def retry_cart_purge(client_id: str):
    # the request session is closed by the time background tasks run
    db = SessionLocal()
    try:
        await ClearCartOnArrival(lambda: _stores(db, client_id)).retry()
    finally:
        db.close()


@router.get("/stripe-redirect", summary="Capture payment redirect")
def stripe_redirect(
    payment_intent: Optional[str] = None,
    pi: Optional[str] = None,
    redirect_status: Optional[str] = None,
):
    response = RedirectResponse("/checkout/confirmation", status_code=303)
    reference = payment_intent or pi
    opts = dict(max_age=REDIRECT_COOKIE_MAX_AGE, path="/", httponly=True, secure=True, samesite="lax")
    if reference:
        response.set_cookie(LAST_PI_COOKIE, reference, **opts)
    if redirect_status:
        response.set_cookie(LAST_STATUS_COOKIE, redirect_status, **opts)
    return response


@router.get("", summary="Order confirmation")
def confirmation(
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    pi: Optional[str] = None,
    payment_intent: Optional[str] = None,
    redirect_status: Optional[str] = None,
    db: Session = Depends(get_db),
    gateway=Depends(get_payment_gateway),
):
    reference = pi or payment_intent or request.cookies.get(LAST_PI_COOKIE)
    status = redirect_status or request.cookies.get(LAST_STATUS_COOKIE)
    view = ConfirmationService(OrderService(gateway, db)).view(reference, status)

    if view["state"] == STATE_CONFIRMED:
        client_id = request.cookies.get(CART_COOKIE)
        ClearCartOnArrival(lambda: _stores(db, client_id)).run()
        for name in cart_cookie_names(request.cookies.keys()):
            response.delete_cookie(name, path="/")
        if client_id:
            background_tasks.add_task(retry_cart_purge, client_id)
    return view
