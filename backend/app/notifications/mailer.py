"""
Email delivery using Apprise.

MAIL_URL holds an Apprise mail URL (mailto:// or mailtos://) with the SMTP
credentials; the recipient is appended per message. With no MAIL_URL the
mailer runs in log-only mode and reports every message as not delivered.
"""

import logging
from functools import lru_cache
from urllib.parse import quote

import apprise

from app.errors import MailDeliveryError
from app.notifications.templates import (
    NEWS_SUMMARY_EMAIL_TEMPLATE,
    WELCOME_EMAIL_TEMPLATE,
    render,
)

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, mail_url: str, from_name: str = "Signalist") -> None:
        self._mail_url = mail_url.strip()
        self._from_name = from_name

        if not self._mail_url:
            logger.info("Mailer: no MAIL_URL configured, running in log-only mode.")

    @property
    def enabled(self) -> bool:
        return bool(self._mail_url)

    def _recipient_url(self, to: str) -> str:
        sep = "&" if "?" in self._mail_url else "?"
        return (
            f"{self._mail_url}{sep}to={quote(to, safe='@')}"
            f"&name={quote(self._from_name)}&format=html"
        )

    async def send(self, to: str, subject: str, html: str) -> bool:
        """
        Deliver one HTML message. Returns False in log-only mode.
        Raises MailDeliveryError when the transport rejects the message.
        """
        if not self.enabled:
            logger.info(f"[Mail log-only] to={to} subject={subject!r}")
            return False

        notifier = apprise.Apprise()
        if not notifier.add(self._recipient_url(to)):
            raise MailDeliveryError("MAIL_URL is not a valid Apprise mail URL")

        ok = await notifier.async_notify(
            body=html,
            title=subject,
            body_format=apprise.NotifyFormat.HTML,
        )
        if not ok:
            raise MailDeliveryError(f"Mail transport rejected message to {to}")

        logger.info(f"Mail sent: {subject!r} → {to}")
        return True

    async def send_welcome_email(self, email: str, name: str, intro: str) -> bool:
        html = render(WELCOME_EMAIL_TEMPLATE, name=name or "there", intro=intro)
        return await self.send(
            to=email,
            subject="Welcome to Signalist - your stock market toolkit is ready",
            html=html,
        )

    async def send_news_email(self, email: str, name: str, date: str, news_content: str) -> bool:
        html = render(
            NEWS_SUMMARY_EMAIL_TEMPLATE,
            name=name or "there",
            date=date,
            newsContent=news_content,
        )
        return await self.send(
            to=email,
            subject=f"Market News Summary - {date}",
            html=html,
        )


@lru_cache(maxsize=1)
def get_mailer() -> Mailer:
    """Singleton Mailer, initialized once from settings."""
    from app.config import get_settings

    settings = get_settings()
    return Mailer(settings.mail_url, from_name=settings.mail_from_name)
