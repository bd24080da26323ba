from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

from wingshop.deps import get_rate_client
from wingshop.schemas.address_schema import Address
from wingshop.schemas.shipping_schema import RateQuote
from wingshop.services.order_math import sanitize_units
from wingshop.services.shipping_service import ERR_GENERIC, ShippingQuoteService
from wingshop.utils.log import get_logger

log = get_logger("shipping")

router = APIRouter(tags=["shipping"])


@router.post("", summary="Quote shipping rates")
async def quote_shipping(request: Request, client=Depends(get_rate_client)):
    # always 200; failures come back as {"rates": [], "error": ...}
    try:
        body = await request.json()
        if not isinstance(body, dict):
            body = {}
        address = Address.from_payload(body)
        items = sanitize_units(body.get("items") if isinstance(body.get("items"), list) else [])
        svc = ShippingQuoteService(client)
        quote = await run_in_threadpool(svc.quote, address, items)
    except Exception as e:
        log.exception(f"shipping route failed: {e}")
        quote = RateQuote(rates=[], error=ERR_GENERIC)
    return quote.to_response()
