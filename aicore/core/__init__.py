"""Core orchestration package.

Architectural role:
    Holds the request-orchestration layer that sits between the API/CLI
    adapters and the memory, retrieval and LLM subsystems.

Composition:
    - `config` / `logging_config`: environment-driven settings and log setup.
    - `errors`: shared error taxonomy.
    - `locks`: reader/writer lock used by the shared stores.
    - `decision`: heuristic action/confidence scoring.
    - `personality`: bounded trait model.
    - `engine`: chat pipeline (keywords -> context -> generation -> record).
    - `context`: the AppContext wiring everything together.

Determinism and side effects:
    Package import itself is side-effect free apart from `.env` loading done
    by `config`.
"""
