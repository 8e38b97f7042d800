from dataclasses import dataclass
import os
from dotenv import load_dotenv


load_dotenv()


IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
RESEND_URL = "https://api.resend.com"


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    firebase_api_key: str = os.getenv("FIREBASE_API_KEY", "")
    firebase_project_id: str = os.getenv("FIREBASE_PROJECT_ID", "")
    firebase_auth_endpoint: str = os.getenv("FIREBASE_AUTH_ENDPOINT", IDENTITY_TOOLKIT_URL)

    resend_api_key: str = os.getenv("RESEND_API_KEY", "")
    resend_endpoint: str = os.getenv("RESEND_ENDPOINT", RESEND_URL)
    mail_from: str = os.getenv("MAIL_FROM", "")
    mail_to: str = os.getenv("MAIL_TO", "")
    admin_secret: str = os.getenv("KARAOKE_ADMIN_SECRET", "")

    cors_allowed_origins: tuple[str, ...] = _split_csv(
        os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:8550,http://127.0.0.1:8550")
    )

    log_level: str = os.getenv("KARAOKE_LOG_LEVEL", "INFO")
    web_mode: bool = os.getenv("KARAOKE_WEB", "0") == "1"
    port: int = int(os.getenv("PORT", "8550"))


settings = Settings()
