"""ChatGPT Clone - streamed chat server and client."""

__version__ = "1.0.0"
