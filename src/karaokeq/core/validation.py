import re
from dataclasses import dataclass
from typing import Optional

from karaokeq.core.credentials import capitalize_name


URL_PATTERN = re.compile(r"^https?://\S+$", re.IGNORECASE)
MIN_TITLE_LENGTH = 2


class ValidationError(ValueError):
    pass


@dataclass(frozen=True)
class SongSubmission:
    title: str
    url: str
    first_name: str = ""
    last_name: str = ""

    @property
    def requester_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


def capitalize_words(value: str) -> str:
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), value.strip())


def validate_song(title: str, url: str) -> tuple[str, str]:
    title = (title or "").strip()
    url = (url or "").strip()
    if not title or not url:
        raise ValidationError("Please fill in all fields.")
    if len(title) < MIN_TITLE_LENGTH:
        raise ValidationError(f"Song title must be at least {MIN_TITLE_LENGTH} characters.")
    if not URL_PATTERN.match(url):
        raise ValidationError("Enter a valid URL (http/https).")
    return title, url


def validate_submission(
    title: str,
    url: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    require_name: bool = True,
) -> SongSubmission:
    """Validate the lobby/participant request form.

    Names are optional for signed-in participants whose display name is
    already known; the lobby form always requires them.
    """
    first = capitalize_name(first_name or "")
    last = capitalize_name(last_name or "")
    if require_name and (not first or not last):
        raise ValidationError("Please fill in all fields.")

    title, url = validate_song(title, url)
    return SongSubmission(
        title=capitalize_words(title),
        url=url,
        first_name=first,
        last_name=last,
    )
