"""Client networking for submitting confirmed selections."""

from .client import MessageSink, SessionClient, selection_payload

__all__ = ["MessageSink", "SessionClient", "selection_payload"]
