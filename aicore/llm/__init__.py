"""Text-generation package.

Architectural role:
    Provides generator configuration, the remote transport, and the
    generator variants used by the chat engine.

Module split:
    - `provider_config`: environment-driven remote generator settings.
    - `client`: HTTP transport to an Ollama-compatible server.
    - `generators`: heuristic, remote, and fallback generator variants.
"""
