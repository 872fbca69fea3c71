"""Slack integration."""

from partyline.infrastructure.slack.client import SlackAppRunner, create_slack_app
from partyline.infrastructure.slack.event_adapter import (
    SLACK_CHANNEL_ID,
    SLACK_SERVICE_URL,
    SlackEventAdapter,
)
from partyline.infrastructure.slack.messaging import SlackMessagingService

__all__ = [
    "SLACK_CHANNEL_ID",
    "SLACK_SERVICE_URL",
    "SlackAppRunner",
    "SlackEventAdapter",
    "SlackMessagingService",
    "create_slack_app",
]
