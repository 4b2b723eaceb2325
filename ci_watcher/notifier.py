"""
Webhook notifications for watcher and job lifecycle events.

A notification is posted as JSON ``{"title": ..., "type": ..., "log": ...}``
to the configured endpoint. Delivery is attempted once; failures are logged
and never reach the caller.
"""

import logging
from dataclasses import dataclass

import requests

from ci_watcher import helpers

logger = logging.getLogger(__name__)

# Severity tags
INFO = "info"
SUCCESS = "success"
ERROR = "error"


@dataclass
class Notification:
    endpoint: str
    title: str
    type: str
    log: str = ""

    def payload(self) -> dict:
        data = {"title": self.title, "type": self.type}
        if self.log:
            data["log"] = self.log
        return data


class Notifier:
    """Sends notifications to one endpoint; disabled when the endpoint is empty"""

    def __init__(self, endpoint: str, post=helpers.post_json):
        self.endpoint = endpoint or ""
        self._post = post

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint)

    def send(self, notification: Notification) -> bool:
        try:
            self._post(notification.endpoint, notification.payload())
        except requests.RequestException as e:
            logger.error(f"Error sending notification '{notification.title}': {e}")
            return False
        logger.debug(f"Sent notification '{notification.title}'")
        return True

    def compose(self, action: str, service_name: str, ntf_type: str, log: str = "") -> bool:
        """Build and deliver a notification titled ``action + service_name``"""
        if not self.enabled:
            return False
        return self.send(Notification(
            endpoint=self.endpoint,
            title=action + service_name,
            type=ntf_type,
            log=log,
        ))
