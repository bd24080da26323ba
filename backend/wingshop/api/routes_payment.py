from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from wingshop.db import get_db
from wingshop.deps import get_payment_gateway
from wingshop.schemas.address_schema import Address
from wingshop.services.payment_service import PaymentService, PaymentServiceException
from wingshop.utils.log import get_logger

log = get_logger("payments")

router = APIRouter(tags=["payments"])


class PaymentIntentIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[Dict[str, Any]] = []
    currency: str = "usd"
    ship_cents: Any = Field(0, alias="shipCents")
    address: Optional[Dict[str, Any]] = None
    rate_id: Optional[str] = Field(None, alias="rateId")


@router.post("", summary="Create payment intent")
def create_payment_intent(
    payload: PaymentIntentIn,
    db: Session = Depends(get_db),
    gateway=Depends(get_payment_gateway),
):
    svc = PaymentService(gateway, db)
    try:
        address = Address.from_payload({"address": payload.address}) if payload.address else None
        res = svc.create_payment_intent(
            payload.items,
            currency=payload.currency,
            ship_cents=payload.ship_cents,
            address=address,
            rate_id=payload.rate_id,
        )
    except PaymentServiceException as e:
        log.error(f"payment intent failed: {e}")
        return JSONResponse(status_code=500, content={"error": str(e) or "failed"})
    except Exception as e:
        log.exception(f"payment intent failed unexpectedly: {e}")
        return JSONResponse(status_code=500, content={"error": "failed"})
    return {"clientSecret": res["client_secret"]}
