"""Phone number utilities for lead contact handling."""

import logging
import re
from urllib.parse import quote

logger = logging.getLogger(__name__)


def phone_digits(phone: str | None) -> str:
    """Strip everything except digits from a phone number.

        +34 600-123 456 → 34600123456
    """
    if not phone:
        return ""
    return re.sub(r"\D", "", phone)


def is_plausible_phone(phone: str | None) -> bool:
    """Whether a phone number has a plausible digit count (7-15, per E.164)."""
    return 7 <= len(phone_digits(phone)) <= 15


def whatsapp_link(phone: str | None, message: str | None = None) -> str | None:
    """Build a wa.me click-to-chat link, or None when the number is unusable."""
    digits = phone_digits(phone)
    if not digits:
        logger.warning(f"Cannot build WhatsApp link for phone: {phone!r}")
        return None
    link = f"https://wa.me/{digits}"
    if message:
        link += f"?text={quote(message)}"
    return link
