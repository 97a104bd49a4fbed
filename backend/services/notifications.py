"""
Twilio SMS notifications
Sends booking confirmations; delivery is best-effort and never fails a request
"""

import logging
from typing import Optional

import httpx

from backend.core import config
from backend.models.appointment import Appointment

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"


def format_phone_number(phone: str) -> str:
    """Return ``phone`` in E.164 form, assuming the default country code for local numbers."""
    normalized = phone.strip().replace(" ", "")
    if normalized.startswith("+"):
        return normalized
    return f"{config.SMS_DEFAULT_COUNTRY_CODE}{normalized}"


def send_sms(to_phone: str, message_body: str) -> tuple[bool, Optional[str]]:
    """
    Send an SMS through the Twilio REST API

    Returns:
        Tuple of (success, error_message)
    """
    if not config.SMS_ENABLED:
        logger.debug("SMS disabled; skipping message to %s", to_phone)
        return False, "SMS disabled"

    if not config.TWILIO_FROM_NUMBER:
        logger.warning("Twilio phone number not configured")
        return False, "Twilio phone number not configured"

    to_number = format_phone_number(to_phone)
    logger.info("Sending SMS from %s to %s", config.TWILIO_FROM_NUMBER, to_number)

    try:
        with httpx.Client(timeout=10.0) as client:
            response = client.post(
                TWILIO_MESSAGES_URL.format(account_sid=config.TWILIO_ACCOUNT_SID),
                auth=(config.TWILIO_ACCOUNT_SID, config.TWILIO_AUTH_TOKEN),
                data={"To": to_number, "From": config.TWILIO_FROM_NUMBER, "Body": message_body},
            )
    except httpx.HTTPError as exc:
        logger.error("Twilio request failed: %s", exc)
        return False, str(exc)

    if response.status_code in (200, 201):
        logger.info("SMS sent to %s (SID: %s)", to_number, response.json().get("sid"))
        return True, None

    error_data = response.json()
    error_message = error_data.get("message", "Unknown error")
    logger.error("Twilio API error [%s]: %s", error_data.get("code"), error_message)
    return False, error_message


def booking_confirmation_message(appointment: Appointment) -> str:
    formatted_date = appointment.appointment_date.strftime("%A, %d %B %Y")
    return (
        "Appointment Confirmed!\n\n"
        f"Date: {formatted_date}\n"
        f"Time: {appointment.slot_start_time}\n"
        f"Bird: {appointment.bird_name}\n\n"
        f"{config.SMS_BRAND_NAME}"
    )


def send_booking_confirmation(appointment: Appointment) -> None:
    sent, error = send_sms(appointment.user_phone, booking_confirmation_message(appointment))
    if not sent:
        logger.warning("Confirmation SMS for appointment %s not delivered: %s", appointment.id, error)
