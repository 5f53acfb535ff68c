"""Fake todo sink: records pushes and withdrawals for testing."""

from uuid import uuid4

from consumables.channel.todo_port import TodoSinkPort


class TodoSinkError(Exception):
    """Raised by the fake sink when configured to fail."""


class FakeTodoSink(TodoSinkPort):
    """Todo sink that keeps alerts in memory for test assertions."""

    def __init__(self):
        self.pushed: list[dict] = []
        self.withdrawn: list[str] = []
        self.should_succeed = True
        self.failure_reason = "Todo service unreachable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Todo service unreachable"):
        """Configure the fake sink behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def push(self, alert: dict) -> str | None:
        if not self.should_succeed:
            raise TodoSinkError(self.failure_reason)

        handle = f"todo-{uuid4().hex[:12]}"
        self.pushed.append({"handle": handle, **alert})
        return handle

    def withdraw(self, handle: str) -> None:
        if not self.should_succeed:
            raise TodoSinkError(self.failure_reason)
        self.withdrawn.append(handle)

    def reset(self):
        """Clear recorded calls and restore success behaviour."""
        self.pushed.clear()
        self.withdrawn.clear()
        self.should_succeed = True
