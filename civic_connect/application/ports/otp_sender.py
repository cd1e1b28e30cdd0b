from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class DeliveryInfo:
    phone_number: str
    channel: str
    reference: Optional[str] = None


class OTPSender(Protocol):
    channel: str

    def send(self, phone_number: str, code: str) -> DeliveryInfo:
        """Deliver the code. Raises DeliveryError on failure."""
        ...
