"""Domain repositories."""

from partyline.domain.repositories.party_store import PartyPredicate, PartyStore

__all__ = ["PartyPredicate", "PartyStore"]
