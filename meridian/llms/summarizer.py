from abc import ABC, abstractmethod


class Summarizer(ABC):
    @abstractmethod
    def summarize(self, prompt: str) -> str:
        """Returns the model's reply to ``prompt`` as plain text."""
        pass
