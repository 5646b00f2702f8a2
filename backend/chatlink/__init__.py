"""ChatLink: chat rooms, friendships and notifications over HTTP and WebSocket."""

__version__ = "0.1.0"
