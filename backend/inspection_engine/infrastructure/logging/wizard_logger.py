"""Colored wizard logger — ANSI-colored console logging for the inspection wizard.

Tags every line with the wizard stage it belongs to, so an editing
session (edits, debounced saves, entity resolution, navigation) can be
followed in the terminal.

Color scheme:
    🟢 Green   — Persist / Complete
    🟡 Yellow  — Auto-save
    🟣 Magenta — Entity resolution
    🔵 Blue    — Navigation
    🟠 Cyan    — Hydrate / Draft
    🔴 Red     — Errors
    ⚪ Gray    — Details (edits, ERP)
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
    GRAY = "\033[90m"


# ── Wizard Stage Definitions ─────────────────────────────────────────

class WizardLogStage:
    """Predefined log stages with colors and icons."""

    HYDRATE = ("HYDRATE", _Colors.CYAN, "📥")
    AUTOSAVE = ("AUTOSAVE", _Colors.YELLOW, "⏱️")
    RESOLVE = ("RESOLVE", _Colors.MAGENTA, "🔗")
    PERSIST = ("PERSIST", _Colors.GREEN, "💾")
    NAVIGATE = ("NAVIGATE", _Colors.BLUE, "🧭")
    DRAFT = ("DRAFT", _Colors.CYAN, "📋")
    COMPLETE = ("COMPLETE", _Colors.GREEN, "✅")
    ERROR = ("ERROR", _Colors.RED, "❌")


# ── WizardLogger ─────────────────────────────────────────────────────

class WizardLogger:
    """Color-coded logger for wizard sessions.

    Usage:
        log = WizardLogger("SessionController")
        log.step_start(WizardLogStage.AUTOSAVE, "Debounce expired", step=2)
        log.step_complete(WizardLogStage.PERSIST, "Saved", inspection_id=42)
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)
        self._component = component_name

    @staticmethod
    def _details(kwargs: dict[str, Any]) -> str:
        if not kwargs:
            return ""
        details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
        return f" {_Colors.GRAY}({details}){_Colors.RESET}"

    def step_start(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        self._logger.info(formatted + self._details(kwargs))

    def step_complete(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        formatted = (
            f"{color}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}✓ {message}{_Colors.RESET}"
        )
        self._logger.info(formatted + self._details(kwargs))

    def step_warning(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """A degraded outcome that does not stop the wizard."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.YELLOW}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.YELLOW}⚠ {message}{_Colors.RESET}"
        )
        self._logger.warning(formatted + self._details(kwargs))

    def step_error(self, stage: tuple[str, str, str], message: str, error: Exception | None = None) -> None:
        label, _, icon = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error(formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        self._logger.debug(formatted + self._details(kwargs))

    @contextmanager
    def timed_step(self, stage: tuple[str, str, str], message: str, **kwargs: Any):
        """Context manager that logs start/end with elapsed time.

        Usage:
            with log.timed_step(WizardLogStage.PERSIST, "Saving step 2"):
                record = await repository.update(...)
        """
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(stage, f"{message} failed after {elapsed:.2f}s", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(stage, f"{message} ({elapsed:.2f}s)")
