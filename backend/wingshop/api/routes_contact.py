from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from wingshop.deps import get_mailer
from wingshop.services.contact_service import (
    ContactService,
    ContactServiceException,
    ContactValidationError,
)

router = APIRouter(tags=["contact"])


async def _read_fields(request: Request) -> dict:
    ctype = request.headers.get("content-type", "")
    if ctype.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
    form = await request.form()
    return {k: form.get(k) for k in ("name", "email", "message")}


@router.post("", summary="Send contact message")
async def contact(request: Request, mailer=Depends(get_mailer)):
    fields = await _read_fields(request)
    svc = ContactService(mailer)
    try:
        await run_in_threadpool(svc.submit, fields.get("name"), fields.get("email"), fields.get("message"))
    except ContactValidationError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except ContactServiceException:
        return JSONResponse(status_code=500, content={"error": "Failed to send"})
    return {"ok": True}
