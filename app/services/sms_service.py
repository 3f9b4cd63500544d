import asyncio
import logging
from typing import Any, Protocol

from twilio.rest import Client

from app.core.config import Settings
from app.models.appointment import Appointment
from app.services import catalog
from app.services.time_utils import utc_to_local

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    async def send(self, to_phone_number: str, message: str) -> None: ...


def format_phone_number(raw: str, country_code: str = "+387") -> str:
    """Normalise a local number to E.164; numbers starting with '+' are kept."""
    number = "".join(raw.split())
    if number.startswith("+"):
        return number
    if number.startswith("00"):
        return "+" + number[2:]
    if number.startswith("0"):
        number = number[1:]
    return country_code + number


def build_cancellation_message(appointment: Appointment, canceled_by_admin: bool, settings: Settings) -> str:
    local = utc_to_local(appointment.appointment_time, settings.tz)
    when = local.strftime("%d.%m.%Y. u %H:%M")
    service = catalog.label_of(appointment.service)
    who = settings.site_name if canceled_by_admin else "Vi"
    return (
        f"{settings.site_name}: Vaš termin ({service}) {when} je otkazan. "
        f"Otkazao: {who}. Za novi termin posjetite našu stranicu."
    )


class TwilioSmsSender:
    """Sends SMS through Twilio. ``client`` is built from settings unless given."""

    def __init__(self, settings: Settings, client: Any | None = None) -> None:
        self.settings = settings
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = Client(self.settings.twilio_account_sid, self.settings.twilio_auth_token)
        return self._client

    def _send_sync(self, to: str, message: str) -> str:
        response = self.client.messages.create(
            body=message,
            from_=self.settings.twilio_phone_number,
            to=to,
        )
        return response.sid

    async def send(self, to_phone_number: str, message: str) -> None:
        if not self.settings.sms_enabled:
            logger.debug("SMS disabled (Twilio not configured), skipping send")
            return
        to = format_phone_number(to_phone_number, self.settings.sms_country_code)
        # the Twilio client blocks; keep it off the event loop
        sid = await asyncio.to_thread(self._send_sync, to, message)
        logger.info("SMS sent to %s (sid=%s)", to, sid)
