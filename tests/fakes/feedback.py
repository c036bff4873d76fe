"""Fake UserFeedback capturing messages for test assertions."""

from dotbundle.core.user_feedback import UserFeedback


class FakeUserFeedback(UserFeedback):
    """Records every message by level instead of printing it."""

    def __init__(self) -> None:
        self._messages: list[tuple[str, str]] = []

    @property
    def messages(self) -> list[tuple[str, str]]:
        """(level, message) pairs in call order."""
        return self._messages

    def of_level(self, level: str) -> list[str]:
        return [message for lvl, message in self._messages if lvl == level]

    @property
    def warnings(self) -> list[str]:
        return self.of_level("warning")

    def info(self, message: str) -> None:
        self._messages.append(("info", message))

    def success(self, message: str) -> None:
        self._messages.append(("success", message))

    def warning(self, message: str) -> None:
        self._messages.append(("warning", message))

    def error(self, message: str) -> None:
        self._messages.append(("error", message))
