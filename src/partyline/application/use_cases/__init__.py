"""Use cases."""

from partyline.application.use_cases.accept_request import AcceptRequestUseCase
from partyline.application.use_cases.end_connection import EndConnectionUseCase
from partyline.application.use_cases.reject_request import RejectRequestUseCase
from partyline.application.use_cases.route_message import RouteMessageUseCase

__all__ = [
    "AcceptRequestUseCase",
    "EndConnectionUseCase",
    "RejectRequestUseCase",
    "RouteMessageUseCase",
]
