import os
import sys
from pathlib import Path

import pytest

# Predictable settings before the app is imported
BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OTP_DELIVERY_CHANNEL"] = "log"
os.environ["OTP_STORE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["DEMO_OTP_ENABLED"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from civic_connect import main  # noqa: E402
from civic_connect.application.ports.otp_sender import DeliveryInfo  # noqa: E402
from civic_connect.application.services.otp_service import OTPService  # noqa: E402
from civic_connect.database import engine  # noqa: E402
from civic_connect.exceptions import DeliveryError  # noqa: E402
from civic_connect.infrastructure.otp.memory_otp_store import InMemoryOTPStore  # noqa: E402
from civic_connect.infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter  # noqa: E402
from civic_connect.routers import deps  # noqa: E402


class RecordingSender:
    """OTP sender fake that remembers every code it was asked to deliver."""

    channel = "whatsapp"

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, phone_number, code):
        if self.fail:
            raise DeliveryError("provider unavailable")
        self.sent.append((phone_number, code))
        return DeliveryInfo(phone_number=phone_number, channel=self.channel, reference="SM-test")

    @property
    def last_code(self):
        return self.sent[-1][1]


@pytest.fixture()
def db_session():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture()
def sender():
    return RecordingSender()


@pytest.fixture()
def otp_service():
    return OTPService(InMemoryOTPStore())


@pytest.fixture()
def client(db_session, sender, otp_service):
    """TestClient with fresh OTP state and a recording delivery channel."""
    main.app.dependency_overrides[deps.get_otp_sender] = lambda: sender
    main.app.dependency_overrides[deps.get_otp_service] = lambda: otp_service
    limiter = InMemoryRateLimiter()
    main.app.dependency_overrides[deps.get_rate_limiter] = lambda: limiter

    with TestClient(main.app) as test_client:
        yield test_client

    main.app.dependency_overrides.clear()
