from typing import Protocol


class SmsSender(Protocol):
    def send_otp(self, phone: str, code: str) -> bool:
        """Deliver the code; report failure with False instead of raising."""
        ...
