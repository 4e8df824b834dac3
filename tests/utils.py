"""Shared sample values and helpers for the ec2bot tests."""

VERIFY_TOKEN = "test-verify-token"

INSTANCE_ID = "i-0a1b2c3d4e"
INSTANCE_PRIVATE_DNS = "ip-10-0-1-23.ap-northeast-1.compute.internal"
LB_NAME = "web-lb"
LB_DNS_NAME = "web-lb-1234567890.ap-northeast-1.elb.amazonaws.com"


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def slack_event_payload(text: str = "", token: str = VERIFY_TOKEN, **event) -> dict:
    """Events API callback wrapping one message event."""
    message = {
        "type": "message",
        "channel": "C123",
        "ts": "1700000000.000100",
        "text": text,
    }
    message.update(event)
    return {
        "token": token,
        "type": "event_callback",
        "team_id": "T123",
        "api_app_id": "A123",
        "event_id": "Ev123",
        "event_time": 1700000000,
        "event": message,
    }
