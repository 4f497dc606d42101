"""Client-side image handling.

Scope:
    Normalizes user-supplied images (downsize + JPEG re-encode within a byte
    budget) and manages slot previews for interactive clients.

Non-goals:
    - No image generation.
    - No server-side image inspection; images are forwarded to the gateway as-is.
"""
