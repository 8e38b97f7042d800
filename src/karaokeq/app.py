import logging
import secrets
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, FastAPI, Header, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from karaokeq.config.logging_setup import configure_logging
from karaokeq.config.settings import settings
from karaokeq.services.mail_service import MailService, MailServiceError


configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Karaoke Queue API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class MailPayload(BaseModel):
    to: Optional[str] = None
    subject: Optional[str] = None
    html: Optional[str] = None
    text: Optional[str] = None


def _failure(status_code: int, error: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": error})


def get_mail_factory() -> Callable[[], MailService]:
    return MailService.from_settings


@app.exception_handler(RequestValidationError)
def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _failure(status.HTTP_400_BAD_REQUEST, "Invalid request body")


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/api/mail")
def send_mail(
    payload: MailPayload,
    x_karaoke_secret: Optional[str] = Header(default=None),
    mail_factory: Callable[[], MailService] = Depends(get_mail_factory),
):
    expected = settings.admin_secret
    if not expected or not x_karaoke_secret or not secrets.compare_digest(x_karaoke_secret, expected):
        return _failure(status.HTTP_401_UNAUTHORIZED, "Unauthorized")

    subject = (payload.subject or "").strip()
    if not subject or not (payload.html or payload.text):
        return _failure(status.HTTP_400_BAD_REQUEST, "Missing subject or body")

    try:
        mailer = mail_factory()
        result = mailer.send(subject, html=payload.html, text=payload.text, to=payload.to)
    except MailServiceError as exc:
        logger.warning("Mail was not sent: %s", exc)
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.detail)

    return {"ok": True, "result": result}
