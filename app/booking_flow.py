from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional
import logging

import requests
from email_validator import validate_email as _validate_email, EmailNotValidError

from config import BookingConfig


logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "Please fill name, phone and date."
INVALID_EMAIL_MESSAGE = "Please enter a valid email address or leave it empty."
FAILURE_MESSAGE = "Failed to book. Please save your details locally and try again."


@dataclass
class BookingRequest:
    name: str = ""
    phone: str = ""
    email: str = ""
    date: str = ""
    time: str = ""
    test: str = ""

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


# ----------------- VALIDATORS ------------------------

def validate_email(email: str) -> bool:
    try:
        _validate_email(email, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False


def validate_booking(booking: BookingRequest) -> Optional[str]:
    """Return an error message, or None when the booking can be sent."""
    if not booking.name.strip() or not booking.phone.strip() or not booking.date:
        return REQUIRED_MESSAGE
    # phone format is deliberately not checked
    if booking.email.strip() and not validate_email(booking.email.strip()):
        return INVALID_EMAIL_MESSAGE
    return None


def confirmation_text(ref: Optional[str]) -> str:
    return f"Booking confirmed. Reference: {ref or 'NA'}"


# ----------------- SUBMIT ------------------------

def submit_booking(cfg: BookingConfig, booking: BookingRequest, http=requests) -> Dict[str, Any]:
    error = validate_booking(booking)
    if error:
        return {"success": False, "ref": None, "message": error}

    try:
        response = http.post(
            cfg.endpoint,
            json=booking.to_payload(),
            headers={"Content-Type": "application/json"},
            timeout=cfg.timeout,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error(f"Booking request to {cfg.endpoint} failed: {e}", exc_info=True)
        return {"success": False, "ref": None, "message": FAILURE_MESSAGE}

    ref = data.get("ref") if isinstance(data, dict) else None
    logger.info(f"Booking confirmed with reference {ref}")
    return {"success": True, "ref": ref, "message": confirmation_text(ref)}
