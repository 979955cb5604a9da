"""
Interactive CLI adapter for the aicore engine.

Architectural role:
- Terminal interface over the same `AppContext` the HTTP adapter uses.
- Delegates each prompt to `ChatEngine.send` in one fixed session.

Request lifecycle (per user turn):
1. Read one line from stdin.
2. Handle local commands (`exit`/`quit`, `clear chat`, `/stats`, `/decide`,
   `/learn <text>`).
3. Forward everything else to the chat engine and print the reply.

Error handling strategy:
- EOF and keyboard interrupts end the loop without a traceback.
- `ValidationError` from the core is printed and the loop continues.
- Shutdown (timer stop plus final snapshot) runs on every exit path.
"""

import asyncio
import sys

from aicore.core.config import load_settings
from aicore.core.context import AppContext
from aicore.core.errors import NotFound, ValidationError
from aicore.core.logging_config import setup_logging


CLI_SESSION_ID = "cli"
SEPARATOR = "-" * 60


# =========================================================
# UTF-8 SAFE STDOUT
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except (AttributeError, ValueError):
        pass


# =========================================================
# LOCAL COMMANDS
# =========================================================

def print_stats(context: AppContext):
    stats = context.stats(5)
    print(f"Experiences: {stats['total_experiences']}")
    print(f"Patterns:    {stats['total_patterns']}")
    for entry in stats["top_patterns"]:
        print(f"  {entry['keyword']}: {entry['frequency']} ({entry['experience_count']} experiences)")


def print_decision(context: AppContext):
    decision = context.decisions.decide()
    print(f"Action:     {decision.action}")
    print(f"Confidence: {decision.confidence}")
    print(f"Reasoning:  {decision.reasoning}")


def handle_command(context: AppContext, question: str) -> bool:
    """Run a local command. Returns False when `question` is not one."""
    lowered = question.lower()

    if lowered in ("empty chat", "clear chat"):
        try:
            context.chat.clear_session(CLI_SESSION_ID)
        except NotFound:
            pass
        print("Chat cleared.")
        return True

    if lowered == "/stats":
        print_stats(context)
        return True

    if lowered == "/decide":
        print_decision(context)
        return True

    if lowered.startswith("/learn "):
        exp = context.store.insert(question[len("/learn "):], "cli")
        print(f"Stored {exp.id}")
        return True

    return False


# =========================================================
# MAIN APPLICATION LOOP
# =========================================================

def main():
    settings = load_settings()
    setup_logging(settings.log_level)

    context = AppContext.create(settings)
    loaded = context.startup()

    print("AI Core started. (Type 'exit' to quit)\n")
    print(SEPARATOR)
    print("MEMORY STATUS:")
    print(f"Experiences loaded: {loaded}")
    print(f"Remote generator:   {'enabled' if settings.provider.enabled else 'disabled'}")
    print(SEPARATOR)

    try:
        while True:
            try:
                question = input("Question: ").strip()
            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                print("\nInterrupted.")
                break

            if not question:
                continue

            if question.lower() in ("exit", "quit"):
                break

            try:
                if handle_command(context, question):
                    print(SEPARATOR)
                    continue

                reply = asyncio.run(context.chat.send(question, CLI_SESSION_ID))
            except ValidationError as err:
                print(f"Error: {err}")
                continue

            print("\nResponse:\n")
            print(reply.message.content)
            print("\n" + SEPARATOR + "\n")
    finally:
        print("Saving memory...")
        context.shutdown()
        print("Shutting down.")


if __name__ == "__main__":
    main()
