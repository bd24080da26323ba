from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from wingshop.db import get_db
from wingshop.deps import get_payment_gateway
from wingshop.services.order_service import OrderService, OrderServiceException
from wingshop.utils.log import get_logger

log = get_logger("orders")

router = APIRouter(tags=["orders"])


@router.get("/{reference}", summary="Get order by payment reference")
def get_order(reference: str, db: Session = Depends(get_db), gateway=Depends(get_payment_gateway)):
    reference = reference.strip()
    if not reference:
        return JSONResponse(status_code=400, content={"error": "Missing payment reference"})
    svc = OrderService(gateway, db)
    try:
        return svc.get_order(reference).to_response()
    except OrderServiceException as e:
        log.error(f"order lookup failed for {reference}: {e}")
        return JSONResponse(status_code=500, content={"error": str(e) or "failed"})
