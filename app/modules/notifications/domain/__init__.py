from .slack import SlackService
from .formatting import (
    SlackMessage,
    format_instance,
    format_load_balancer,
    format_not_found,
)

__all__ = [
    "SlackService",
    "SlackMessage",
    "format_instance",
    "format_load_balancer",
    "format_not_found",
]
