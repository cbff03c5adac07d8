"""Colored consistency logger — ANSI-colored console logging for cross-entity operations.

Provides a ConsistencyLogger with color-coded output per stage, making it
easy to follow guarded deletions, reference cleanup, counter refreshes and
the expiration sweep in the terminal.

Color scheme:
    🟡 Yellow  — Guard checks
    🟣 Magenta — Reference cleanup
    🔴 Red     — Deletions / errors
    🔵 Blue    — Article-count refresh
    🟠 Cyan    — Sibling reorder
    🟢 Green   — Expiration sweep / completion
    ⚪ Gray    — Timing / stats
"""

import logging
import time
from contextlib import contextmanager
from typing import Any


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"


# ── Stage Definitions ────────────────────────────────────────────────

class ConsistencyStage:
    """Predefined stages with colors and icons."""

    GUARD = ("GUARD", _Colors.YELLOW, "🛡️")
    CLEANUP = ("CLEANUP", _Colors.MAGENTA, "🧹")
    DELETE = ("DELETE", _Colors.RED, "🗑️")
    COUNT = ("COUNT", _Colors.BLUE, "🔢")
    REORDER = ("REORDER", _Colors.CYAN, "↕️")
    SWEEP = ("SWEEP", _Colors.GREEN, "⏳")
    ARTICLE = ("ARTICLE", _Colors.WHITE, "📄")
    ERROR = ("ERROR", _Colors.RED, "❌")
    COMPLETE = ("COMPLETE", _Colors.GREEN, "✅")


# ── ConsistencyLogger ────────────────────────────────────────────────

class ConsistencyLogger:
    """Color-coded logger for section/article consistency work.

    Usage:
        log = ConsistencyLogger("ConsistencyCoordinator")
        log.step_start(ConsistencyStage.GUARD, "Checking section 'FAQ'")
        log.detail("articles=0 children=0")
        log.step_complete(ConsistencyStage.DELETE, "Section removed")
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)
        self._component = component_name

    @staticmethod
    def _details(kwargs: dict[str, Any], color: str) -> str:
        details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
        return f" {color}({details}){_Colors.RESET}"

    def step_start(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log the start of a step with its stage color."""
        label, color, icon = stage
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += self._details(kwargs, _Colors.GRAY)
        self._logger.info(formatted)

    def step_complete(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log the successful completion of a step."""
        label, color, icon = stage
        formatted = (
            f"{color}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}✓ {message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += self._details(kwargs, _Colors.GRAY)
        self._logger.info(formatted)

    def step_rejected(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log a refused operation (guard or validation) at warning level."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.YELLOW}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.YELLOW}✗ {message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += self._details(kwargs, _Colors.DIM)
        self._logger.warning(formatted)

    def step_error(self, stage: tuple[str, str, str], message: str, error: Exception | None = None) -> None:
        """Log a step error in red."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error(formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        """Log additional detail (gray/dimmed)."""
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        if kwargs:
            formatted += self._details(kwargs, _Colors.DIM)
        self._logger.info(formatted)

    @contextmanager
    def timed_step(self, stage: tuple[str, str, str], message: str, **kwargs: Any):
        """Context manager that logs start/end with elapsed time.

        Usage:
            with log.timed_step(ConsistencyStage.SWEEP, "Purging expired articles"):
                removed = await sweeper.cleanup_expired_articles()
        """
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(stage, f"{message} — failed after {elapsed:.2f}s", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(stage, f"{message} — {elapsed:.2f}s", **kwargs)
