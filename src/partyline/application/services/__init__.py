"""Application services."""

from partyline.application.services.message_forwarder import MessageForwarder
from partyline.application.services.result_history import ResultHistory

__all__ = ["MessageForwarder", "ResultHistory"]
