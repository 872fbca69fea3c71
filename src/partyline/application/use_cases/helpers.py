"""Helper functions for use cases."""

import logging

from partyline.domain.entities import Party
from partyline.domain.exceptions import ConversationNotAccessibleError
from partyline.domain.services import MessagingService

logger = logging.getLogger(__name__)


async def notify(messaging_service: MessagingService, party: Party, text: str) -> bool:
    """Send a notification, logging instead of raising if it cannot be delivered.

    Args:
        messaging_service: Service for sending messages.
        party: Party to notify.
        text: Notification text.

    Returns:
        True if the message was sent.
    """
    try:
        await messaging_service.send_message(party, text)
    except ConversationNotAccessibleError as e:
        logger.warning("Could not notify %s: %s", party, e)
        return False
    return True
