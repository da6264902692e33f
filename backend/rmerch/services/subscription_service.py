import re
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rmerch.adapters.mailer import Mailer
from rmerch.errors import ConflictError, ValidationError
from rmerch.models.subscriber import Subscriber
from rmerch.utils.logging import get_logger
from rmerch.utils.transactions import smart_transaction

log = get_logger("rmerch.subscriptions")

EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")


class SubscriptionService:
    def __init__(self, db: Session, mailer: Optional[Mailer] = None):
        self.db = db
        self.mailer = mailer or Mailer()

    def subscribe(self, email: Optional[str]) -> Tuple[Subscriber, bool]:
        """
        Returns (subscriber, created). created is False when a previously
        unsubscribed address was reactivated.
        """
        if not email:
            raise ValidationError("Email is required")
        if not EMAIL_RE.match(email):
            raise ValidationError("Please enter a valid email")
        address = email.strip().lower()

        try:
            with smart_transaction(self.db):
                sub = self._find(address)
                created = sub is None
                if sub is not None:
                    if sub.subscribed:
                        raise ConflictError("This email is already subscribed")
                    sub.subscribed = True
                    sub.subscribed_at = datetime.now(timezone.utc)
                else:
                    sub = Subscriber(email=address, subscribed=True)
                    self.db.add(sub)
                self.db.flush()
            if self.db.in_transaction():
                self.db.commit()
        except IntegrityError as e:
            # subscribed concurrently, after the lookup above
            self.db.rollback()
            raise ConflictError("This email is already subscribed") from e

        log.info("%s %s", "subscribed" if created else "resubscribed", address)
        self._welcome(address)
        return sub, created

    def _find(self, address: str) -> Optional[Subscriber]:
        return self.db.query(Subscriber).filter(Subscriber.email == address).first()

    def _welcome(self, address: str):
        # the subscription stands even when the welcome email can't be delivered
        try:
            self.mailer.send_welcome(address)
        except Exception:
            log.exception("welcome email to %s failed", address)
