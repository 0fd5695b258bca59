"""termbridge -- Remote command and REPL execution engine.

This package lets a remote caller submit free-form command text and
receive a rendered transcript back, as if typing into a local shell or
REPL, while the serving process keeps no interactive terminal. Input is
normalized before dispatch, REPL variables persist across stateless
requests in a session-scoped store, and external tools run either
buffered or streamed.
"""

__version__ = "0.1.0"
