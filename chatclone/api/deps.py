"""
Request dependencies - objects created at start-up and attached to ``app.state``.
"""

from fastapi import Request

from ..core import CompletionService, EvalStore
from ..services import GoogleOAuthClient
from ..storage import ChatRepository


def get_chat_repository(request: Request) -> ChatRepository:
    return request.app.state.chat_repository


def get_completion_service(request: Request) -> CompletionService:
    return request.app.state.completion_service


def get_eval_store(request: Request) -> EvalStore:
    return request.app.state.eval_store


def get_google_client(request: Request) -> GoogleOAuthClient:
    return request.app.state.google_client
