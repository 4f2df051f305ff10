"""Remote answer store: HTTP client, wire schemas and background dispatch."""

from .client import AnswerStoreClient
from .concurrency import BackgroundDispatcher, InlineDispatcher
from .schemas import AnswerPayload, QuestionPayload

__all__ = [
    "AnswerPayload",
    "AnswerStoreClient",
    "BackgroundDispatcher",
    "InlineDispatcher",
    "QuestionPayload",
]
