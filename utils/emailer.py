import logging
import smtplib
from email.message import EmailMessage

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


def html_to_text(html: str) -> str:
    return BeautifulSoup(html or "", "html.parser").get_text("\n", strip=True)


class Mailer:
    """Best-effort SMTP notifier. ``send`` never raises."""

    def __init__(self, host=None, port=587, username=None, password=None, from_email=None, use_tls=True):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email or username
        self.use_tls = use_tls

    @classmethod
    def from_config(cls, config):
        return cls(
            host=config.get("SMTP_HOST"),
            port=config.get("SMTP_PORT", 587),
            username=config.get("SMTP_USERNAME"),
            password=config.get("SMTP_PASSWORD"),
            from_email=config.get("SMTP_FROM_EMAIL"),
            use_tls=config.get("SMTP_USE_TLS", True),
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.from_email)

    def send(self, to_email: str, subject: str, html: str) -> bool:
        if not self.configured:
            logger.info("Email not configured, skipping %r to %s", subject, to_email)
            return False

        msg = EmailMessage()
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(html_to_text(html))
        msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
            logger.info("Email %r sent to %s", subject, to_email)
            return True
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Email %r to %s failed: %s", subject, to_email, exc)
            return False
