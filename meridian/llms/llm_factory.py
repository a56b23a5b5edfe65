from functools import lru_cache
from typing import Optional

from meridian.config import settings
from meridian.llms.litellm_provider import LiteLLMSummarizer
from meridian.llms.summarizer import Summarizer
from meridian.utils.logger import logger


@lru_cache(maxsize=None)
def summarizer() -> Optional[Summarizer]:
    """
    Factory function to get the summarizer instance.
    Uses lru_cache to ensure a single instance is created (singleton pattern).
    Returns None when no LLM_MODEL is configured.
    """
    if not settings.LLM_MODEL:
        logger.info("LLM_MODEL is not set; strategic insights are disabled.")
        return None
    logger.info(f"Using LiteLLM summarizer with model {settings.LLM_MODEL}.")
    return LiteLLMSummarizer(settings.LLM_MODEL)
