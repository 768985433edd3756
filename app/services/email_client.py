# app/services/email_client.py
import requests

from app.utils.retry import http_retry
from app.utils.settings import EMAIL_API_URL, EMAIL_API_KEY, EMAIL_FROM, HTTP_TIMEOUT_SECONDS
from app.utils.logging import get_logger

logger = get_logger(__name__)


class EmailClient:
    """Klient HTTP transakcyjnego API e-mail (format Resend)."""

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        sender: str | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        self.api_url = api_url or EMAIL_API_URL
        self.api_key = api_key if api_key is not None else EMAIL_API_KEY
        self.sender = sender or EMAIL_FROM
        self.timeout = timeout

    @http_retry()
    def send(self, to: list[str], subject: str, html: str) -> dict:
        if not self.api_key:
            raise RuntimeError("EMAIL_API_KEY is not configured")

        logger.info(f"EmailClient POST {self.api_url} to {len(to)} recipient(s)")
        resp = requests.post(
            self.api_url,
            json={"from": self.sender, "to": to, "subject": subject, "html": html},
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()
