import logging
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from ...application.ports.otp_sender import DeliveryInfo, OTPSender
from ...config import settings
from ...exceptions import DeliveryError
from ...utils import normalize_phone_number

logger = logging.getLogger(__name__)

OTP_MESSAGE = "Your verification code is {code}. It expires in {minutes} minutes. Do not share it with anyone."


class TwilioOTPSender(OTPSender):
    """Delivers codes as Twilio WhatsApp or SMS messages."""

    def __init__(self, client: Optional[Client] = None, channel: str = "whatsapp", from_number: Optional[str] = None, country_code: Optional[str] = None):
        self.client = client or Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        self.channel = channel
        self.from_number = from_number or settings.TWILIO_FROM_NUMBER
        self.country_code = country_code or settings.DEFAULT_COUNTRY_CODE

    def _address(self, number: str) -> str:
        if self.channel == "whatsapp" and not number.startswith("whatsapp:"):
            return f"whatsapp:{number}"
        return number

    def to_e164(self, phone_number: str) -> str:
        raw = (phone_number or "").strip()
        if raw.startswith("+"):
            return "+" + "".join(ch for ch in raw if ch.isdigit())
        return f"{self.country_code}{normalize_phone_number(raw)}"

    def send(self, phone_number: str, code: str) -> DeliveryInfo:
        if not self.from_number:
            raise DeliveryError("Twilio sender number not configured")
        to = self.to_e164(phone_number)
        body = OTP_MESSAGE.format(code=code, minutes=max(1, settings.OTP_TTL_SECONDS // 60))
        try:
            message = self.client.messages.create(
                to=self._address(to),
                from_=self._address(self.from_number),
                body=body,
            )
        except (TwilioException, OSError) as e:
            # Provider messages can echo the destination number
            logger.error(f"Twilio {self.channel} delivery error: {type(e).__name__} code={getattr(e, 'code', None)}")
            raise DeliveryError(f"Failed to deliver OTP via {self.channel}")
        logger.info(f"Twilio {self.channel} OTP queued, SID: {message.sid}")
        return DeliveryInfo(phone_number=to, channel=self.channel, reference=message.sid)
