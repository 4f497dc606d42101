"""Generation history package.

Architectural role:
    `history_store` keeps a best-effort, append-only log of completed generations.
    Nothing in the request path depends on it succeeding.
"""
