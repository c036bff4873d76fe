"""User-facing progress output with mode awareness."""

from abc import ABC, abstractmethod

import click

from dotbundle.cli.output import user_output


class UserFeedback(ABC):
    """Provides user-facing progress output.

    Core components report progress through ctx.feedback rather than
    printing, so tests can capture it and quiet mode can suppress it.

    Mode behavior:
        Interactive (quiet=False): every message goes to stderr
        Quiet (quiet=True): only warnings and errors are shown
    """

    @abstractmethod
    def info(self, message: str) -> None:
        """Show informational message (suppressed in quiet mode)."""

    @abstractmethod
    def success(self, message: str) -> None:
        """Show success message (suppressed in quiet mode)."""

    @abstractmethod
    def warning(self, message: str) -> None:
        """Show warning message (always shown)."""

    @abstractmethod
    def error(self, message: str) -> None:
        """Show error message (always shown)."""


class InteractiveFeedback(UserFeedback):
    """Feedback shown in interactive mode (all messages)."""

    def info(self, message: str) -> None:
        user_output(message)

    def success(self, message: str) -> None:
        user_output(click.style(message, fg="green"))

    def warning(self, message: str) -> None:
        user_output(click.style("Warning: ", fg="yellow") + message)

    def error(self, message: str) -> None:
        user_output(click.style(message, fg="red"))


class QuietFeedback(InteractiveFeedback):
    """Feedback for --quiet runs: warnings and errors only."""

    def info(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass
