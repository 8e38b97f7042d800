from typing import Any, Dict, Optional
import requests
from requests import RequestException

from karaokeq.config.settings import settings


class MailServiceError(Exception):
    def __init__(self, detail: Any) -> None:
        super().__init__(str(detail))
        self.detail = detail


class MailService:
    """Sends transactional mail through Resend's HTTP API."""

    SEND_PATH = "/emails"

    def __init__(self, api_key: str, endpoint: str, mail_from: str, mail_to: str = "") -> None:
        if not api_key:
            raise MailServiceError("Missing RESEND_API_KEY in environment")
        if not mail_from:
            raise MailServiceError("Missing MAIL_FROM in environment")
        self.api_key = api_key
        self.endpoint = endpoint.rstrip("/")
        self.mail_from = mail_from
        self.mail_to = mail_to

    @classmethod
    def from_settings(cls) -> "MailService":
        return cls(settings.resend_api_key, settings.resend_endpoint, settings.mail_from, settings.mail_to)

    def send(
        self,
        subject: str,
        *,
        html: Optional[str] = None,
        text: Optional[str] = None,
        to: Optional[str] = None,
    ) -> Dict[str, Any]:
        recipient = to or self.mail_to
        if not recipient:
            raise MailServiceError("No recipient configured")

        payload: Dict[str, Any] = {
            "from": self.mail_from,
            "to": [recipient],
            "subject": subject,
        }
        if html:
            payload["html"] = html
        if text:
            payload["text"] = text

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            res = requests.post(f"{self.endpoint}{self.SEND_PATH}", headers=headers, json=payload, timeout=15)
        except RequestException as exc:
            raise MailServiceError("MAIL_SERVICE_UNAVAILABLE") from exc
        try:
            data = res.json()
        except ValueError:
            raise MailServiceError("MAIL_SERVICE_UNAVAILABLE")

        if res.status_code >= 400:
            raise MailServiceError(data)
        return data
