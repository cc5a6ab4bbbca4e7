"""
Abstract interface for document summarizers.

The ingestion pipeline only depends on this interface, so the Gemini client
can be swapped for any provider (or a test double) that turns a downloaded
transcript into guidance text.
"""

from abc import ABC, abstractmethod
from pathlib import Path


class Summarizer(ABC):
    """
    Abstract Base Class for document summarizers.
    """

    @abstractmethod
    async def summarize_document(self, path: str | Path) -> str:
        """
        Summarize the document at `path` into guidance text.

        Returns the sentinel "NA" when the document carries no guidance.
        Raises SummarizationError on any provider failure.
        """

    async def close(self):
        """
        Optional method to close any underlying connections or clients.
        Providers that don't need explicit closing can have an empty implementation.
        """
        return
