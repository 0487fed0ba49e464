"""
Text-generation capability used by the pipelines.
"""

from abc import ABC, abstractmethod


class ContentGenerator(ABC):
    """Stateless prompt-in, text-out backend. One call is one request."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Submit a prompt and return the generated text.

        Raises:
            GenerationError: If the backend fails or returns no text
        """
        ...

    async def close(self) -> None:
        """Release any held connections."""
