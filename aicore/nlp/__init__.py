"""Text-processing utilities.

Architectural role:
    Deterministic lexical helpers with no dependency on memory or LLM layers.
    - `tokenizer`: keyword extraction shared by index, decisions, and chat.
"""
