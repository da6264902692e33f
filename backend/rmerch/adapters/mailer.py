import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from rmerch.config import settings
from rmerch.utils.logging import get_logger

log = get_logger("rmerch.mailer")

WELCOME_SUBJECT = "Welcome to the R-Merch community!"

WELCOME_TEXT = """Welcome to the R-Merch community!

Thanks for subscribing to our newsletter. As a subscriber you will be the
first to hear about exclusive product launches, special offers and discounts,
new designs and collections, and news from the RIWI community.

Browse the shop: {shop_url}

The R-Merch team
"""

WELCOME_HTML = """<!DOCTYPE html>
<html lang="en">
<body style="margin:0;padding:0;font-family:Arial,sans-serif;background-color:#f5f5f5;">
  <div style="max-width:600px;margin:0 auto;background-color:#ffffff;">
    <div style="background:#615CF2;padding:40px 20px;text-align:center;">
      <h1 style="color:#ffffff;margin:0;font-size:32px;">R-Merch</h1>
      <p style="color:#ffffff;margin:10px 0 0 0;font-size:14px;">by RIWI</p>
    </div>
    <div style="padding:40px 20px;color:#666666;font-size:16px;line-height:1.6;">
      <h2 style="color:#161C40;">Welcome to the R-Merch community!</h2>
      <p>Thanks for subscribing to our newsletter. As a subscriber you will be the first to hear about:</p>
      <ul>
        <li>Exclusive product launches</li>
        <li>Special offers and discounts</li>
        <li>New designs and collections</li>
        <li>News from the RIWI community</li>
      </ul>
      <p style="text-align:center;margin:40px 0;">
        <a href="{shop_url}" style="background-color:#615CF2;color:#ffffff;text-decoration:none;padding:16px 32px;border-radius:8px;font-weight:bold;">Browse products</a>
      </p>
      <p><strong>The R-Merch team</strong></p>
    </div>
  </div>
</body>
</html>
"""


def smtp_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type((smtplib.SMTPException, OSError)),
    )


class Mailer:
    """Outbound mail over SMTP. Unconfigured (no SMTP_HOST) means sends are skipped."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: Optional[bool] = None,
        sender: Optional[str] = None,
    ):
        self.host = settings.SMTP_HOST if host is None else host
        self.port = port or settings.SMTP_PORT
        self.user = settings.SMTP_USER if user is None else user
        self.password = settings.SMTP_PASSWORD if password is None else password
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls
        self.sender = sender or settings.MAIL_FROM

    def is_configured(self) -> bool:
        return bool(self.host)

    def build_welcome(self, to: str) -> MIMEMultipart:
        shop_url = f"{settings.PUBLIC_URL.rstrip('/')}/shop"
        msg = MIMEMultipart("alternative")
        msg["Subject"] = WELCOME_SUBJECT
        msg["From"] = self.sender
        msg["To"] = to
        msg.attach(MIMEText(WELCOME_TEXT.format(shop_url=shop_url), "plain", "utf-8"))
        msg.attach(MIMEText(WELCOME_HTML.format(shop_url=shop_url), "html", "utf-8"))
        return msg

    def send_welcome(self, to: str) -> bool:
        """Returns False when no SMTP server is configured; SMTP errors propagate."""
        if not self.is_configured():
            log.info("SMTP not configured, welcome email to %s skipped", to)
            return False
        self._send(to, self.build_welcome(to))
        log.info("welcome email sent to %s", to)
        return True

    @smtp_retry()
    def _send(self, to: str, msg: MIMEMultipart):
        with smtplib.SMTP(self.host, self.port, timeout=10) as s:
            if self.use_tls:
                s.starttls()
            if self.user:
                s.login(self.user, self.password)
            s.sendmail(self.sender, [to], msg.as_string())
