"""Open Sound Control messages, port dispatch, thread links and MIDI mapping."""

__version__ = "0.1.0"

__all__ = [
    "message",
    "version",
    "thread_link",
    "metadata",
    "ports",
    "ports_runtime",
    "miditable",
]