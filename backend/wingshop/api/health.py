from fastapi import APIRouter, Depends
from sqlalchemy import text

from wingshop.db import engine
from wingshop.deps import get_mailer, get_payment_gateway, get_rate_client

router = APIRouter()


@router.get("/health", tags=["health"])
def health(
    gateway=Depends(get_payment_gateway),
    rate_client=Depends(get_rate_client),
    mailer=Depends(get_mailer),
):
    db_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            db_ok = True
    except Exception:
        db_ok = False

    payment_ok = gateway.health_check()
    shipping_ok = rate_client.health_check()
    email_ok = mailer.health_check()

    return {
        "status": "ok" if db_ok and payment_ok and shipping_ok and email_ok else "degraded",
        "db": db_ok,
        "payment_adapter": payment_ok,
        "shipping_adapter": shipping_ok,
        "email_adapter": email_ok,
    }
