"""Format resolved values as shell export lines."""

from typing import Iterable, List

from .secrets.base import ResolvedValue

# Closes the single-quoted string, emits a double-quoted quote, reopens
SINGLE_QUOTE_ESCAPE = "'\"'\"'"


def quote_value(value: str) -> str:
    """Single-quote a value for a POSIX shell."""
    return "'" + value.replace("'", SINGLE_QUOTE_ESCAPE) + "'"


def format_export(resolved: ResolvedValue) -> str:
    """Return ``export NAME='VALUE'`` for one resolved value."""
    return f"export {resolved.name}={quote_value(resolved.value)}"


def format_exports(values: Iterable[ResolvedValue]) -> str:
    """Render all values as newline-separated export lines, in given order.

    The result ends with a newline when there is at least one value.
    """
    lines = [format_export(value) for value in values]
    return "".join(line + "\n" for line in lines)


def format_env(values: Iterable[ResolvedValue]) -> List[str]:
    """Render values as raw ``NAME=VALUE`` pairs for a process environment."""
    return [f"{value.name}={value.value}" for value in values]
