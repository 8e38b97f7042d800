from dataclasses import dataclass
from typing import Any, Dict, Optional
import requests
from requests import RequestException

from karaokeq.config.settings import settings


ERROR_MESSAGES = {
    "EMAIL_EXISTS": "An account with this name already exists. Please sign in.",
    "EMAIL_NOT_FOUND": "No account found with this name. Please sign up first.",
    "INVALID_PASSWORD": "Invalid PIN. Please try again.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid name or PIN. Please try again.",
    "USER_DISABLED": "This account has been suspended.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
    "CREDENTIAL_TOO_OLD_LOGIN_AGAIN": "Please sign in again and retry.",
    "TOKEN_EXPIRED": "Please sign in again and retry.",
}


class AuthServiceError(Exception):
    def __init__(self, code: str, message: Optional[str] = None) -> None:
        super().__init__(message or ERROR_MESSAGES.get(code, code))
        self.code = code


@dataclass
class AuthResult:
    uid: str
    email: str
    id_token: str
    refresh_token: str
    display_name: str = ""


class FirebaseAuthService:
    SIGN_UP_PATH = "/accounts:signUp"
    LOGIN_PATH = "/accounts:signInWithPassword"
    UPDATE_PATH = "/accounts:update"
    DELETE_PATH = "/accounts:delete"

    def __init__(self, api_key: str, endpoint: str) -> None:
        if not api_key:
            raise AuthServiceError("CONFIG", "Missing FIREBASE_API_KEY in environment")
        self.api_key = api_key
        self.endpoint = endpoint.rstrip("/")

    @classmethod
    def from_settings(cls) -> "FirebaseAuthService":
        return cls(settings.firebase_api_key, settings.firebase_auth_endpoint)

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> AuthResult:
        payload = {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        }
        result = self._to_result(self._post(self.SIGN_UP_PATH, payload), email)
        if display_name and display_name.strip():
            self.update_display_name(result.id_token, display_name.strip())
            result.display_name = display_name.strip()
        return result

    def sign_in(self, email: str, password: str) -> AuthResult:
        payload = {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        }
        response = self._post(self.LOGIN_PATH, payload)
        return self._to_result(response, email)

    def sign_in_anonymously(self) -> AuthResult:
        response = self._post(self.SIGN_UP_PATH, {"returnSecureToken": True})
        return self._to_result(response, "")

    def update_display_name(self, id_token: str, display_name: str) -> None:
        self._post(
            self.UPDATE_PATH,
            {
                "idToken": id_token,
                "displayName": display_name,
                "returnSecureToken": False,
            },
        )

    def delete_account(self, id_token: str) -> None:
        self._post(self.DELETE_PATH, {"idToken": id_token})

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.endpoint}{path}"
        try:
            res = requests.post(url, params={"key": self.api_key}, json=payload, timeout=15)
        except RequestException as exc:
            raise AuthServiceError("AUTH_SERVICE_UNAVAILABLE") from exc
        try:
            data = res.json()
        except ValueError:
            raise AuthServiceError("AUTH_SERVICE_UNAVAILABLE")

        if res.status_code >= 400:
            error = data.get("error") or {}
            message = str(error.get("message") or "AUTH_ERROR")
            # Identity Toolkit appends details after the code, e.g. "WEAK_PASSWORD : ..."
            raise AuthServiceError(message.split(" ", 1)[0])

        return data

    @staticmethod
    def _to_result(data: Dict[str, Any], email: str) -> AuthResult:
        uid = str(data.get("localId") or "")
        if not uid:
            raise AuthServiceError("INVALID_FIREBASE_SESSION")
        return AuthResult(
            uid=uid,
            email=str(data.get("email") or email),
            id_token=str(data.get("idToken") or ""),
            refresh_token=str(data.get("refreshToken") or ""),
            display_name=str(data.get("displayName") or ""),
        )
