"""Prompt assembly for the remote generator.

This module only builds prompt strings from an already retrieved context
bundle. Retrieval, validation, and model invocation happen elsewhere.

Design constraints:
    - Deterministic construction for identical inputs.
    - Fixed ordering: system message, memory context, recent conversation
      (when the session has any), user question, closing instruction.
    - No I/O and no global state mutation.
"""

from aicore.llm.provider_config import SYSTEM_MESSAGE


NO_CONTEXT_TEXT = "No context available."


def build_context_prompt(bundle) -> str:
    """Build the remote prompt for one chat turn.

    Args:
        bundle: `ContextBundle` produced by `aicore.retrieval.context_builder`.

    Returns:
        Prompt string. Context lines render as `- <content> (from <source>)`,
        history lines as `<role>: <content>`.
    """
    lines = bundle.context_lines()
    if lines:
        context_text = "Context from memory:\n" + "\n".join(lines)
    else:
        context_text = NO_CONTEXT_TEXT

    history = bundle.history_lines()
    history_text = "Recent conversation:\n" + "\n".join(history) + "\n\n" if history else ""

    return (
        f"{SYSTEM_MESSAGE}\n"
        f"{context_text}\n\n"
        f"{history_text}"
        f"User question: {bundle.message}\n\n"
        "Please provide a helpful response based on the context above."
    )
