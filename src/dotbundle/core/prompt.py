"""Interactive questions with a non-blocking fallback.

Every question dotbundle asks can also be answered by a flag or an
environment variable. When neither a terminal nor such an answer is
available, the prompter fails immediately instead of waiting on stdin.
"""

import sys
from abc import ABC, abstractmethod

import click

from dotbundle.core.registry import BundleDescriptor
from dotbundle.errors import NonInteractiveError


class Prompter(ABC):
    """Asks the operator for confirmations and selections."""

    @abstractmethod
    def confirm(self, message: str, *, hint: str) -> bool:
        """Ask a yes/no question (default no).

        Args:
            message: The question
            hint: How to answer non-interactively, used in the error message

        Raises:
            NonInteractiveError: If no terminal is attached
        """
        ...

    @abstractmethod
    def select_bundles(self, choices: list[BundleDescriptor]) -> list[str]:
        """Let the operator pick bundles from a menu.

        Returns:
            Selected bundle ids in the order given

        Raises:
            NonInteractiveError: If no terminal is attached
        """
        ...

    @abstractmethod
    def choose(self, message: str, options: list[str]) -> int:
        """Let the operator pick one option; returns its index."""
        ...


def _parse_menu_answer(answer: str, choices: list[BundleDescriptor]) -> list[str] | None:
    by_id = {choice.id: choice for choice in choices}
    selected: list[str] = []
    for token in answer.replace(",", " ").split():
        if token.isdigit():
            index = int(token) - 1
            if not 0 <= index < len(choices):
                return None
            bundle_id = choices[index].id
        elif token in by_id:
            bundle_id = token
        else:
            return None
        if bundle_id not in selected:
            selected.append(bundle_id)
    return selected or None


class TerminalPrompter(Prompter):
    """Production prompter reading answers from the controlling terminal."""

    def _require_tty(self, hint: str) -> None:
        if not sys.stdin.isatty():
            raise NonInteractiveError(f"No terminal available to answer prompt. {hint}")

    def confirm(self, message: str, *, hint: str) -> bool:
        self._require_tty(hint)
        return click.confirm(message, default=False, err=True)

    def select_bundles(self, choices: list[BundleDescriptor]) -> list[str]:
        self._require_tty("Use --bundle <id> or set DOTBUNDLE_BUNDLES=<id,id>.")
        click.echo("Select bundles:", err=True)
        for index, choice in enumerate(choices, start=1):
            suffix = f" - {choice.description}" if choice.description else ""
            click.echo(f"  {index}) {choice.display_name} [{choice.id}]{suffix}", err=True)

        while True:
            answer = click.prompt("Bundles (numbers or ids, comma separated)", err=True)
            selected = _parse_menu_answer(answer, choices)
            if selected is not None:
                return selected
            click.echo("Invalid selection.", err=True)

    def choose(self, message: str, options: list[str]) -> int:
        self._require_tty("Pass the identifier as an argument.")
        for index, option in enumerate(options, start=1):
            click.echo(f"  {index}) {option}", err=True)
        value = click.prompt(
            f"{message} [1-{len(options)}]",
            type=click.IntRange(1, len(options)),
            err=True,
        )
        return value - 1
