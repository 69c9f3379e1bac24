import base64
import binascii
import logging
import os
import re
import time
import uuid
from typing import Optional, Tuple

from src.config import get_settings
from src.utils.validation import CollegeIdDocument

logger = logging.getLogger(__name__)

# General e-mail shape accepted by the confirmation-page gate
EMAIL_TOKEN_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ACADEMIC_DOMAINS = ("ac.in", "edu", "edu.in")
ACADEMIC_EMAIL_PATTERN = re.compile(
    r"^[^\s@|]+@(?:[A-Za-z0-9-]+\.)*(?:" + "|".join(re.escape(d) for d in ACADEMIC_DOMAINS) + r")$",
    re.IGNORECASE,
)

TOKEN_SEPARATOR = "|"

FILE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "application/pdf": ".pdf",
}


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_registration_token(email: str, timestamp: Optional[int] = None, with_timestamp: bool = True) -> str:
    """
    Encode an e-mail (and issue time in epoch milliseconds) as a registration token.

    The token is plain base64 with no signature: anyone can mint one for any
    e-mail address. It hides the address from casual inspection, nothing more.
    """
    payload = email
    if with_timestamp:
        payload = f"{email}{TOKEN_SEPARATOR}{now_ms() if timestamp is None else timestamp}"
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def decode_registration_token(token: str) -> str:
    """Base64-decode a token; raises ValueError when it cannot be decoded"""
    # '+' arrives as ' ' when the token was not URL-encoded
    cleaned = token.strip().replace(" ", "+")
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValueError(f"Undecodable token: {e}") from e


def is_token_email(value: str, academic_only: bool = False) -> bool:
    if academic_only:
        return bool(ACADEMIC_EMAIL_PATTERN.fullmatch(value))
    return bool(EMAIL_TOKEN_PATTERN.fullmatch(value) or ACADEMIC_EMAIL_PATTERN.fullmatch(value))


def is_token_expired(issued_at_ms: int, current_ms: Optional[int] = None, max_age_hours: Optional[int] = None) -> bool:
    """A token is expired once it is strictly older than max_age_hours"""
    if max_age_hours is None:
        max_age_hours = get_settings().token_max_age_hours
    if current_ms is None:
        current_ms = now_ms()
    return current_ms - issued_at_ms > max_age_hours * 60 * 60 * 1000


def validate_registration_token(token: Optional[str], current_ms: Optional[int] = None) -> Tuple[bool, str]:
    """
    Check a confirmation-page token.

    Returns:
        (True, email) when the token is acceptable,
        (False, reason) otherwise.
    """
    if not token:
        return False, "missing token"

    try:
        decoded = decode_registration_token(token)
    except ValueError:
        return False, "token is not valid base64"

    email, separator, issued_at = decoded.partition(TOKEN_SEPARATOR)
    if not is_token_email(email, academic_only=get_settings().token_academic_domains_only):
        return False, "token does not contain a valid email"

    if separator:
        try:
            issued_at_ms = int(issued_at)
        except ValueError:
            return False, "token timestamp is not an integer"
        if is_token_expired(issued_at_ms, current_ms):
            return False, "token has expired"

    return True, email


def mask_email(email: str) -> str:
    """Mask an e-mail for log output (keep first character of the local part)"""
    local, _, domain = email.partition("@")
    if not domain or len(local) <= 1:
        return email
    return local[0] + "*" * (len(local) - 1) + "@" + domain


def save_college_id(document: CollegeIdDocument, upload_dir: Optional[str] = None) -> str:
    """Store an uploaded college ID under a generated name and return its path"""
    if upload_dir is None:
        upload_dir = get_settings().upload_dir
    os.makedirs(upload_dir, exist_ok=True)

    extension = FILE_EXTENSIONS.get(document.content_type, "")
    path = os.path.join(upload_dir, f"{uuid.uuid4().hex}{extension}")
    with open(path, "wb") as f:
        f.write(document.content)
    logger.debug("Saved college ID %s as %s", document.filename, path)
    return path


def remove_college_ids(paths) -> None:
    """Delete stored college IDs that no saved registration points to"""
    for path in paths:
        if not path:
            continue
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove college ID %s: %s", path, e)
