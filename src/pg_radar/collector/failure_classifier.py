"""Deterministic classification of producer failures into skip or failure."""

from __future__ import annotations

from dataclasses import dataclass

COMMAND_NOT_FOUND_EXIT_CODE = 127

_EXECUTABLE_NOT_FOUND_PATTERNS: tuple[str, ...] = (
    "executable file not found",
    "command not found",
)
_NO_DATA_PATTERNS: tuple[str, ...] = (
    "no such file or directory",
    "no match",
    "doesn't exist",
)


@dataclass(slots=True)
class CommandFailureClassification:
    """Normalized classification of a failed command invocation."""

    skip: bool
    matched_rule: str
    matched_pattern: str | None

    def describe(self, command: str) -> str:
        if self.matched_rule == "command_not_found":
            return f"command not found: {command}"
        if self.skip:
            return f"data not available: {command}"
        return f"command failed: {command}"


def classify_command_failure(
    *,
    exit_code: int | None,
    output: str,
    error_message: str = "",
) -> CommandFailureClassification:
    """Classify a failed command from its exit status, output and spawn error."""

    pattern = _first_match(error_message.lower(), _EXECUTABLE_NOT_FOUND_PATTERNS)
    if pattern is not None or exit_code == COMMAND_NOT_FOUND_EXIT_CODE:
        return CommandFailureClassification(
            skip=True,
            matched_rule="command_not_found",
            matched_pattern=pattern,
        )

    stripped = output.strip()
    if not stripped:
        return CommandFailureClassification(
            skip=True,
            matched_rule="empty_output",
            matched_pattern=None,
        )

    pattern = _first_match(stripped.lower(), _NO_DATA_PATTERNS)
    if pattern is not None:
        return CommandFailureClassification(
            skip=True,
            matched_rule="no_data",
            matched_pattern=pattern,
        )

    return CommandFailureClassification(
        skip=False,
        matched_rule="fallback_failure",
        matched_pattern=None,
    )


def normalize_special_case(command: str, output: bytes) -> bytes | None:
    """Return replacement output for known tool quirks, or None."""

    # systemd-detect-virt exits 1 after printing "none" on bare metal
    if command == "systemd-detect-virt" and output.strip() == b"none":
        return b"none\n"
    return None


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None
