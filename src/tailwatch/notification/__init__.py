"""
Notification channels: batching aggregators and email transport.
"""

from .aggregator import AGGREGATE_TITLE, Aggregator
from .transport import LOCAL_RELAY_HOST, LOCAL_RELAY_PORT, STARTTLS_PORT, SmtpTransport

__all__ = [
    "AGGREGATE_TITLE",
    "Aggregator",
    "LOCAL_RELAY_HOST",
    "LOCAL_RELAY_PORT",
    "STARTTLS_PORT",
    "SmtpTransport",
]
