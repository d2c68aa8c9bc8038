"""
Completion Client Factory

Creates the completion client from LLM settings.
"""

import logging

from gemchat.config import LLMSettings
from gemchat.llm.gemini import GeminiClient

logger = logging.getLogger(__name__)


def create_completion_client(config: LLMSettings) -> GeminiClient:
    """
    Create a completion client instance.

    Args:
        config: LLM configuration settings

    Returns:
        Configured client instance
    """
    logger.info(
        f"Creating completion client for {config.model}",
        extra={"model": config.model, "title_model": config.resolved_title_model},
    )
    return GeminiClient(
        base_url=config.base_url,
        model=config.model,
        title_model=config.resolved_title_model,
        temperature=config.temperature,
        top_k=config.top_k,
        max_output_tokens=config.max_output_tokens,
        timeout=config.timeout,
    )
