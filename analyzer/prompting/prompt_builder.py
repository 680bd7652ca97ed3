"""
Prompt Builder Layer
====================

Defines the fixed instruction that asks the model for a JSON object with
exactly three fields: sentiment, confidence, analysis.

The instruction and the input text travel together in ONE user-role
message; there is no system prompt.
"""

SENTIMENT_INSTRUCTION = (
    "Analyze the sentiment of this text and respond in JSON format with: "
    '{"sentiment": "positive/negative/neutral", '
    '"confidence": 0.0-1.0, '
    '"analysis": "brief explanation"}. '
)


def build_sentiment_prompt(text: str) -> str:
    """Return the user message content for ``text``."""
    return f"{SENTIMENT_INSTRUCTION}Text: {text}"
