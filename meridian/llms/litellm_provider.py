import litellm

from meridian.llms.summarizer import Summarizer
from meridian.utils.logger import logger


class LiteLLMSummarizer(Summarizer):
    def __init__(self, model: str, max_tokens: int = 512):
        self.model = model
        self.max_tokens = max_tokens

    def summarize(self, prompt: str) -> str:
        logger.info(f"Requesting summary from model: {self.model}...")
        response = litellm.completion(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content or ""
