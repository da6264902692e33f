from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from rmerch.adapters.mailer import Mailer
from rmerch.db import engine
from rmerch.utils.logging import get_logger

log = get_logger("rmerch.health")

router = APIRouter()


@router.get("/health", tags=["health"])
def health():
    db_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            db_ok = True
    except SQLAlchemyError:
        log.exception("health check: database unreachable")
    mailer_ok = Mailer().is_configured()

    return {
        "status": "ok" if db_ok else "degraded",
        "db": db_ok,
        "mailer": mailer_ok,
    }
