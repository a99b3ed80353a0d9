"""Single-threaded TCP echo servers on select, poll and epoll, and a blocking client."""

__version__ = "0.1.0"
__all__ = ["listener", "servers", "client"]