"""Alert notifier adapters implementing AlertNotifierPort."""

from restopulse.adapters.notifiers.in_memory import InMemoryAlertNotifier
from restopulse.adapters.notifiers.slack import SlackWebhookNotifier

__all__ = ["InMemoryAlertNotifier", "SlackWebhookNotifier"]
