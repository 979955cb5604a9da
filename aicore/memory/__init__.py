"""Memory subsystem package.

Architectural role:
    Groups the stateful memory components:
    - `experience_store`: ordered experience log with lookup and search.
    - `pattern_index`: keyword statistics derived from the store.
    - `chat_sessions`: per-session message threads.
    - `chat_export`: session rendering for download.
    - `persistence`: snapshot load/save and the periodic snapshot timer.

Only `persistence` touches the filesystem.
"""
