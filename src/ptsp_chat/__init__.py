"""
ptsp-chat: chat front end for the PTSP Jawa Tengah RAG assistant.

Keeps a local history of conversations and talks to the RAG backend over HTTP.
"""

from ptsp_chat.client import ChatClient
from ptsp_chat.chat import ChatController, ChatState
from ptsp_chat.sessions import SessionStore
from ptsp_chat.storage import FileStorage, MemoryStorage
from ptsp_chat.transport.http import RequestOrchestrator
from ptsp_chat.errors import (
    PTSPChatError,
    ValidationError,
    UnreachableError,
    BackendError,
    InvalidResponseError,
    StorageError,
)

__version__ = "0.1.0"
__all__ = [
    "ChatClient",
    "ChatController",
    "ChatState",
    "SessionStore",
    "FileStorage",
    "MemoryStorage",
    "RequestOrchestrator",
    "PTSPChatError",
    "ValidationError",
    "UnreachableError",
    "BackendError",
    "InvalidResponseError",
    "StorageError",
]
