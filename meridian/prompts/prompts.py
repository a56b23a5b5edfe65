class Prompts:
    """
    A class to hold predefined prompt templates for LLM interactions.
    """

    STRATEGIC_INSIGHT_PROMPT = """You are a CTO or VP of Engineering reviewing your team's health.

Here are the key signals detected from the data:
{signals}

Based on these signals, provide ONE single "Strategic Advice" insight.
It should be directive, high-level, and addressed to the engineering leader.
Focus on the root cause or the most critical action to take.

Respond in JSON format:
{{
  "title": "...",
  "description": "...",
  "action": "..."
}}"""
