"""helpserv - online help for IRC services.

Renders per-service help topics from static documents with ``#if``
conditional blocks, or from dynamic handlers.
"""

__version__ = "0.3.0"
