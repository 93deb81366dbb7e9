"""
Notification transports.

Only email is supported. Delivery is blocking (smtplib) and is expected to
run in an executor thread.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

from ..models.config import SmtpConfig
from ..models.runtime import Notification, TimeoutConstants

logger = logging.getLogger(__name__)

LOCAL_RELAY_HOST = "localhost"
LOCAL_RELAY_PORT = 25
STARTTLS_PORT = 587


class SmtpTransport:
    """
    Sends notifications as plain-text email.

    Without a login the message goes unauthenticated to a relay on
    localhost. With a login the connection to ``login.host`` is upgraded
    with STARTTLS before authenticating.
    """

    def __init__(self, config: SmtpConfig, timeout: float = TimeoutConstants.SMTP_TIMEOUT):
        self.config = config
        self.timeout = timeout

    @property
    def host(self) -> str:
        if self.config.login is None:
            return LOCAL_RELAY_HOST
        return self.config.login.host

    @property
    def port(self) -> int:
        if self.config.port is not None:
            return self.config.port
        return LOCAL_RELAY_PORT if self.config.login is None else STARTTLS_PORT

    def build_message(self, notification: Notification) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.config.sender
        msg["To"] = ", ".join(self.config.recipients)
        msg["Subject"] = notification.title
        msg.set_content(notification.body)
        return msg

    def send(self, notification: Notification, ssl_context: Optional[ssl.SSLContext] = None) -> None:
        """
        Deliver one notification.

        Raises:
            smtplib.SMTPException, OSError: If delivery fails
        """
        msg = self.build_message(notification)
        login = self.config.login
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if login is not None:
                server.starttls(context=ssl_context or ssl.create_default_context())
                server.login(login.username, login.password)
            server.send_message(msg)
        logger.debug(f"Delivered '{notification.title}' via {self.host}:{self.port}")
