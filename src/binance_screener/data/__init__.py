"""Market data module."""

from .connector import ExchangeDataSource, CCXTConnector
from .retrieval import RetrievalConfig, RetrievalOrchestrator

__all__ = [
    "ExchangeDataSource",
    "CCXTConnector",
    "RetrievalConfig",
    "RetrievalOrchestrator",
]
