"""
Prompt Builder layer.

Exports the SENTIMENT_INSTRUCTION template and build_sentiment_prompt().
"""

from .prompt_builder import SENTIMENT_INSTRUCTION, build_sentiment_prompt

__all__ = ["SENTIMENT_INSTRUCTION", "build_sentiment_prompt"]
