"""aicore: experience memory, pattern index, and context-aware chat engine.

Architectural role:
    Top-level package. Subsystems are grouped the same way at every layer:
    - `core`: shared context, configuration, errors, locking, decision and
      personality models, and the chat orchestration engine.
    - `memory`: experience store, derived pattern index, chat sessions,
      snapshot persistence.
    - `nlp`: the keyword tokenizer shared by indexing, decisions and chat.
    - `llm`: generator variants and the remote text-generation transport.
    - `prompting`: prompt assembly for the remote generator.
    - `retrieval`: context selection and document ingestion.
    - `api`: HTTP and terminal adapters.
"""

__version__ = "0.1.0"
