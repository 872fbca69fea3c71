"""Notification texts sent to parties."""

from partyline.domain.entities import Party

REQUEST_SENT = "Your request has been sent. Please wait for an agent to connect."
REQUEST_ALREADY_SENT = "Your request is still waiting for an agent."
NO_AGENTS_AVAILABLE = "No agents are available at the moment. Please try again later."
NEW_REQUEST = "{name} is requesting a connection."
CONNECTED_OWNER = "You are now connected to {name}."
CONNECTED_CLIENT = "You are now connected to {name}. Type `!end` to leave."
REQUEST_REJECTED = "Your request was declined."
DISCONNECTED = "The conversation with {name} has ended."


def display_name(party: Party | None) -> str:
    if party is None:
        return "someone"
    return party.channel_account_name or party.channel_account_id or "someone"
