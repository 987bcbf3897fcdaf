"""
One-time login codes.

Codes live in process memory with a TTL. There is no SMS gateway; the code
is written to the structured log, which is where operators pick it up.
"""
import hmac
import secrets
import time
from typing import Dict, Optional, Tuple

import structlog


logger = structlog.get_logger(__name__)


class OtpService:
    def __init__(self, ttl_seconds: int = 300, dev_code: Optional[str] = None, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.dev_code = dev_code
        self._clock = clock
        self._codes: Dict[str, Tuple[str, float]] = {}

    def issue(self, phone_number: str) -> str:
        code = f"{secrets.randbelow(1_000_000):06d}"
        now = self._clock()
        self._prune(now)
        self._codes[phone_number] = (code, now + self.ttl_seconds)
        logger.info("otp_issued", phone_number=phone_number, otp=code, expires_in=self.ttl_seconds)
        return code

    def _prune(self, now: float) -> None:
        for phone_number, (_, expires_at) in list(self._codes.items()):
            if now > expires_at:
                del self._codes[phone_number]

    def verify(self, phone_number: str, code: str) -> bool:
        """Check ``code`` for ``phone_number``. A matched code is consumed."""
        if self.dev_code and hmac.compare_digest(code.encode(), self.dev_code.encode()):
            logger.warning("otp_dev_code_used", phone_number=phone_number)
            return True
        entry = self._codes.get(phone_number)
        if entry is None:
            return False
        expected, expires_at = entry
        if self._clock() > expires_at:
            self._codes.pop(phone_number, None)
            return False
        if not hmac.compare_digest(code.encode(), expected.encode()):
            return False
        self._codes.pop(phone_number, None)
        return True
