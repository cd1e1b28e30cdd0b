import logging

from ...application.ports.otp_sender import DeliveryInfo, OTPSender
from ...utils import hash_phone_number, normalize_phone_number

logger = logging.getLogger(__name__)


class LoggingOTPSender(OTPSender):
    """Development channel: writes the code to the log instead of sending it."""

    channel = "log"

    def send(self, phone_number: str, code: str) -> DeliveryInfo:
        logger.info(f"OTP for phone {hash_phone_number(normalize_phone_number(phone_number))[:12]}: {code}")
        return DeliveryInfo(phone_number=phone_number, channel=self.channel)
