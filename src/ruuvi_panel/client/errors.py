"""Typed exceptions and error handling decorator."""

from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

from rich.console import Console
from rich.markup import escape

F = TypeVar("F", bound=Callable[..., Any])

err_console = Console(stderr=True)


class PanelError(Exception):
    """Base exception for ruuvi-panel."""

    exit_code: int = 1


class TransportError(PanelError):
    """A request to the gateway failed.

    ``status_code`` is the HTTP status of the failed response, or ``None``
    when no response was received at all.
    """

    exit_code = 2

    def __init__(self, status_code: int | None, message: str = "") -> None:
        self.status_code = status_code
        self.message = message
        if status_code is None:
            super().__init__(message)
        else:
            super().__init__(f"Gateway returned {status_code}: {message}")


class GatewayConnectionError(TransportError):
    """Cannot connect to the gateway."""

    def __init__(self, message: str) -> None:
        super().__init__(None, message)


class AuthenticationError(TransportError):
    """Authentication failed (401/403)."""

    exit_code = 3


class NotFoundError(TransportError):
    """Endpoint not found (404)."""

    exit_code = 4


class BridgeUnavailableError(TransportError):
    """The smart-home bridge is not running on the gateway (503)."""


class ValidationError(PanelError):
    """Input that can never be sent to the gateway."""

    exit_code = 5


class ConfigurationError(PanelError):
    """Local panel configuration is missing or invalid."""

    exit_code = 6


class InvalidStateError(PanelError):
    """Operation not allowed in the controller's current state."""

    exit_code = 7


class PartialMutationError(PanelError):
    """One half of a compound tag edit was saved, the other was not."""

    exit_code = 8

    def __init__(self, saved: str, failed: str, cause: TransportError) -> None:
        self.saved = saved
        self.failed = failed
        self.cause = cause
        super().__init__(
            f"Saved {saved}, but failed to save {failed}: {cause}"
        )


def error_handler(func: F) -> F:
    """Decorator that catches PanelError and prints user-friendly messages."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except PartialMutationError as exc:
            err_console.print(f"[bold yellow]Partially saved:[/] {escape(str(exc))}")
            err_console.print(
                "[yellow]A gateway restart is still required for the saved part.[/]"
            )
            raise SystemExit(exc.exit_code)
        except PanelError as exc:
            err_console.print(f"[bold red]Error:[/] {escape(str(exc))}")
            raise SystemExit(exc.exit_code)
        except ValueError as exc:
            err_console.print(f"[bold red]Error:[/] {escape(str(exc))}")
            raise SystemExit(1)

    return wrapper  # type: ignore[return-value]
