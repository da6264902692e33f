from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rmerch.adapters.mailer import Mailer
from rmerch.api.responses import ok
from rmerch.db import get_db
from rmerch.schemas.user_schema import SubscribeIn
from rmerch.services.subscription_service import SubscriptionService

router = APIRouter(tags=["subscribe"])


def get_mailer() -> Mailer:
    return Mailer()


@router.post("/subscribe", summary="Join the mailing list")
def subscribe(
    payload: SubscribeIn,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    sub, created = SubscriptionService(db, mailer=mailer).subscribe(payload.email)
    if created:
        return ok(
            {"email": sub.email},
            message="Subscribed! Check your inbox for the welcome message",
            status_code=201,
        )
    return ok({"email": sub.email}, message="Welcome back! Your subscription is active again")
