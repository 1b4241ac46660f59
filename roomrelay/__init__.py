"""Ephemeral, password-protected chat rooms relayed over WebSockets."""

__version__ = "0.1.0"
