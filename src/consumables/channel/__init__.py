"""Todo sink registry: where stock alerts are pushed after they commit.

Uses the in-memory fake by default; a real adapter for the external todo
service is installed with ``set_todo_sink`` at application start.
"""

from consumables.channel.todo_port import TodoSinkPort

_sink: TodoSinkPort | None = None


def get_todo_sink() -> TodoSinkPort:
    """Return the configured todo sink (singleton)."""
    global _sink
    if _sink is None:
        from consumables.channel.fake_todo import FakeTodoSink

        _sink = FakeTodoSink()
    return _sink


def set_todo_sink(sink: TodoSinkPort) -> None:
    global _sink
    _sink = sink


def reset_todo_sinks():
    """Reset the sink singleton (useful for testing)."""
    global _sink
    _sink = None
