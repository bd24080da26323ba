from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wingshop.api.health import router as health_router
from wingshop.api.routes_cart import router as cart_router
from wingshop.api.routes_catalogue import router as catalogue_router
from wingshop.api.routes_confirmation import router as confirmation_router
from wingshop.api.routes_contact import router as contact_router
from wingshop.api.routes_order import router as order_router
from wingshop.api.routes_payment import router as payment_router
from wingshop.api.routes_shipping import router as shipping_router
from wingshop.config import settings
from wingshop.db import init_db
from wingshop.housekeeping import run_housekeeping


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    init_db()

    # scheduler for abandoning stale pending orders and old storage entries
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        run_housekeeping,
        "interval",
        seconds=settings.HOUSEKEEPING_INTERVAL_SECONDS,
        id="housekeeping",
    )
    scheduler.start()

    try:
        yield
    finally:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Wing Sauce Shop - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(catalogue_router, prefix="/api/products", tags=["catalogue"])

app.include_router(cart_router, tags=["cart"])

app.include_router(shipping_router, prefix="/api/shipping", tags=["shipping"])

app.include_router(payment_router, prefix="/api/stripe", tags=["payments"])

app.include_router(order_router, prefix="/api/orders", tags=["orders"])

app.include_router(contact_router, prefix="/api/contact", tags=["contact"])

app.include_router(confirmation_router, tags=["confirmation"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("wingshop.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
