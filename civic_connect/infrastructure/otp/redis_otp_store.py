import json
from typing import Optional

import redis

from ...application.ports.otp_store import OTPEntry, OTPStore


class RedisOTPStore(OTPStore):
    """OTP entries shared across processes; Redis expires them on its own."""

    def __init__(self, url: str, ttl_seconds: int, prefix: str = "otp:") -> None:
        self.client = redis.Redis.from_url(url)
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    @staticmethod
    def _decode(raw) -> OTPEntry:
        data = json.loads(raw)
        return OTPEntry(code=data["code"], issued_at=float(data["issued_at"]))

    def get(self, key: str) -> Optional[OTPEntry]:
        raw = self.client.get(f"{self.prefix}{key}")
        if raw is None:
            return None
        return self._decode(raw)

    def put(self, key: str, entry: OTPEntry) -> None:
        payload = json.dumps({"code": entry.code, "issued_at": entry.issued_at})
        self.client.set(f"{self.prefix}{key}", payload, ex=self.ttl_seconds)

    def consume(self, key: str, candidate: str, expired_before: float) -> bool:
        name = f"{self.prefix}{key}"
        with self.client.pipeline() as pipe:
            while True:
                try:
                    # WATCH aborts the DEL if another verifier touched the key first
                    pipe.watch(name)
                    raw = pipe.get(name)
                    if raw is None:
                        return False
                    entry = self._decode(raw)
                    if entry.issued_at > expired_before and candidate != entry.code:
                        pipe.unwatch()
                        return False
                    pipe.multi()
                    pipe.delete(name)
                    pipe.execute()
                    return entry.issued_at > expired_before
                except redis.WatchError:
                    continue

    def sweep(self, expired_before: float) -> int:
        # Keys carry their own expiry
        return 0
