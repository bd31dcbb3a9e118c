"""Error taxonomy for an export run.

Every error that ends an export carries the process exit code the CLI should
use, so the command layer never has to map exception types by hand.
"""

from __future__ import annotations

from core.enums import ExitCode


class ExportError(Exception):
    exit_code: ExitCode = ExitCode.FETCH_FAILED

    def __init__(self, message: str, *, index_name: str | None = None, phase: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.index_name = index_name
        self.phase = phase

    def __str__(self) -> str:
        context = []
        if self.phase:
            context.append(f"phase={self.phase}")
        if self.index_name:
            context.append(f"index={self.index_name}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ConfigurationError(ExportError):
    """Invalid invocation detected before any I/O (e.g. a bad output path)."""

    exit_code = ExitCode.INVALID_OUTPUT_PATH


class FetchError(ExportError):
    exit_code = ExitCode.FETCH_FAILED


class BackendError(FetchError):
    """The search backend refused a request or answered with something unusable."""

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code


class IncompleteScrollError(FetchError):
    """The scroll ended (or overshot) without matching the reported total."""


class PageBudgetExceededError(FetchError):
    pass


class FetchStateError(FetchError):
    pass


class PersistenceError(ExportError):
    exit_code = ExitCode.WRITE_FAILED


class GridStateError(RuntimeError):
    pass


class UnsetCellError(KeyError):
    def __init__(self, col: int, row: int) -> None:
        super().__init__((col, row))
        self.col = col
        self.row = row

    def __str__(self) -> str:
        return f"cell ({self.col}, {self.row}) has not been set"
