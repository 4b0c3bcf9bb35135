"""Notifier backends."""

import logging

from django.utils.module_loading import import_string

from pointman.conf import pointman_settings
from pointman.protocols import Notifier

logger = logging.getLogger("pointman.notifications")


class LoggingNotifier:
    """Default notifier: writes the notice to the log and acknowledges it."""

    def send(self, user_id: str, message: str) -> bool:
        logger.info("Notice for user %s: %s", user_id, message)
        return True


def get_notifier() -> Notifier:
    """Instantiate the configured NOTIFIER_BACKEND."""
    backend_class = import_string(pointman_settings.NOTIFIER_BACKEND)
    return backend_class()
