"""
OpenAI chat model used for reading scanned lab and echo reports.

Created on first use so importing the app never needs an API key.
"""

from functools import lru_cache

from langchain_openai import ChatOpenAI

from trialops.config import get_settings


@lru_cache()
def get_vision_llm() -> ChatOpenAI:
    settings = get_settings()
    return ChatOpenAI(
        model=settings.vision_model,
        temperature=0.0,
        max_tokens=settings.vision_max_tokens,  # Lab panels are small JSON objects
        api_key=settings.openai_api_key,
    )
