"""webterminal -- Browser terminal backend.

This package implements the server side of a browser-based terminal:
each WebSocket connection is bound to a session with its own sandbox
directory and environment, a handful of built-in commands are answered
directly from session state, and everything else runs as a real shell
process under a timeout, an output cap and a command blocklist.
"""

__version__ = "0.1.0"
