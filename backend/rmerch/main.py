from contextlib import asynccontextmanager

import uvicorn
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from rmerch.api.health import router as health_router
from rmerch.api.responses import fail
from rmerch.api.routes_auth import router as auth_router
from rmerch.api.routes_cart import router as cart_router
from rmerch.api.routes_catalogue import router as catalogue_router
from rmerch.api.routes_order import router as order_router
from rmerch.api.routes_reviews import router as reviews_router
from rmerch.api.routes_subscribe import router as subscribe_router
from rmerch.api.routes_users import router as users_router
from rmerch.config import settings
from rmerch.db import SessionLocal, init_db
from rmerch.errors import ShopError
from rmerch.services.cart_service import CartService
from rmerch.utils.logging import get_logger

log = get_logger("rmerch.app")


def purge_carts_job():
    db = SessionLocal()
    try:
        CartService(db).purge_expired()
    except Exception:
        log.exception("cart purge failed")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    init_db()

    scheduler = None
    if settings.CART_PURGE_INTERVAL_SECONDS > 0:
        scheduler = BackgroundScheduler()
        scheduler.add_job(
            purge_carts_job,
            "interval",
            seconds=settings.CART_PURGE_INTERVAL_SECONDS,
            id="purge_expired_carts",
        )
        scheduler.start()

    try:
        yield
    finally:
        if scheduler:
            scheduler.shutdown(wait=False)


app = FastAPI(title="R-Merch - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    return fail(exc.status_code, exc.message, exc.detail)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = f"{field}: {first.get('msg')}" if field else "Invalid request"
    return fail(400, msg)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("unhandled error on %s %s", request.method, request.url.path)
    return fail(500, "Internal server error", str(exc))


app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(catalogue_router, prefix="/api")

app.include_router(cart_router, prefix="/api")

app.include_router(order_router, prefix="/api")

app.include_router(reviews_router, prefix="/api")

app.include_router(auth_router, prefix="/api")

app.include_router(users_router, prefix="/api")

app.include_router(subscribe_router, prefix="/api")


if __name__ == "__main__":
    uvicorn.run("rmerch.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
