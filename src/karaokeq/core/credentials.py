import re
from dataclasses import dataclass
from typing import Tuple

from karaokeq.core.roles import PARTICIPANT, ROLE_DOMAINS


PIN_PATTERN = re.compile(r"^\d{4}$")


class CredentialError(ValueError):
    pass


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str
    display_name: str


def _local_part(name: str) -> str:
    return re.sub(r"\s+", "", name.lower())


def capitalize_name(value: str) -> str:
    text = (value or "").strip()
    if not text:
        return ""
    return text[0].upper() + text[1:].lower()


def split_display_name(display_name: str) -> Tuple[str, str]:
    parts = (display_name or "").split(" ", 1)
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[1]


def build_credentials(first_name: str, last_name: str, pin: str, role: str = PARTICIPANT) -> Credentials:
    """Turn a human name and PIN into the synthetic email/password pair."""
    if role not in ROLE_DOMAINS:
        raise CredentialError(f"Unknown role: {role}")

    first = capitalize_name(first_name)
    last = capitalize_name(last_name)
    if not first:
        raise CredentialError("First name is required.")
    if not last:
        raise CredentialError("Last name is required.")

    pin = (pin or "").strip()
    if role == PARTICIPANT and not PIN_PATTERN.match(pin):
        raise CredentialError("PIN must be 4 digits.")
    if not pin:
        raise CredentialError("PIN is required.")

    email = f"{_local_part(first)}.{_local_part(last)}@{ROLE_DOMAINS[role]}"
    return Credentials(
        email=email,
        password=f"{pin}{first}{last}",
        display_name=f"{first} {last}",
    )
