"""Validation of user-supplied heading exclusion patterns.

Exclusion patterns come straight from user settings, so they are screened
before use: obviously catastrophic shapes are refused up front, the rest are
compiled and searched against a worst-case probe string in a worker process
that is killed once the time budget runs out.
"""

import multiprocessing
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import structlog

from tocsmith.services.exceptions import InvalidPattern

logger = structlog.get_logger()

MAX_PATTERN_LENGTH = 100
PROBE_BUDGET_SECONDS = 0.1
PROBE_STRING = "a" * 1000
PROBE_STARTUP_SECONDS = 10.0
PROBE_STARTED = "started"
PROBE_FINISHED = "finished"

# Shapes known to backtrack catastrophically
DANGEROUS_SHAPES = [
    re.compile(r"\(\*\+"),              # nested quantifiers
    re.compile(r"\+\*\+"),              # stacked quantifiers
    re.compile(r"\{\d+,\}\+"),          # open range followed by +
    re.compile(r"\(\.\*\)\+"),          # (.*)+
    re.compile(r"\(\.\+\)\*"),          # (.+)*
    re.compile(r"\(\[\^\]\*\)\+"),      # ([^]*)+
    re.compile(r"\{\d{3,},\d{3,}\}"),   # very large ranges
    re.compile(r"\(\.\*\?\)\+"),        # (.*?)+
    re.compile(r"\(\?=.*\(\?="),        # stacked lookaheads
    re.compile(r"\(\?!.*\(\?!"),        # stacked negative lookaheads
    # (X*)+ and (X+)* for a single atom X
    re.compile(r"\((?:\.|\\[wWsSdD]|\[[^\]]*\]|[^()\\|])[*+]\??\)[*+{]"),
]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one pattern."""

    is_valid: bool
    error: Optional[str] = None


def _run_probe(pattern: str, conn) -> None:
    """Worker process body: report readiness, then the probe search."""
    compiled = re.compile(pattern, re.IGNORECASE)
    conn.send(PROBE_STARTED)
    compiled.search(PROBE_STRING)
    conn.send(PROBE_FINISHED)
    conn.close()


def probe_finishes(pattern: str, budget: float = PROBE_BUDGET_SECONDS) -> bool:
    """
    Run the probe search in a worker process and kill it at the budget.

    A ``re`` search cannot be interrupted in-process; a runaway probe is
    stopped by terminating its worker. The budget starts once the worker has
    compiled the pattern.

    Args:
        pattern: A pattern that already compiles
        budget: Seconds the search may take

    Returns:
        True if the search finished within the budget
    """
    receiver, sender = multiprocessing.Pipe(duplex=False)
    worker = multiprocessing.Process(target=_run_probe, args=(pattern, sender), daemon=True)
    worker.start()
    sender.close()

    try:
        if not receiver.poll(PROBE_STARTUP_SECONDS) or receiver.recv() != PROBE_STARTED:
            logger.warning("pattern_probe_not_started", pattern=pattern)
            return False
        return receiver.poll(budget) and receiver.recv() == PROBE_FINISHED
    except EOFError:
        logger.warning("pattern_probe_died", pattern=pattern)
        return False
    finally:
        if worker.is_alive():
            worker.terminate()
        worker.join()
        receiver.close()


@lru_cache(maxsize=256)
def validate_pattern(pattern: str) -> ValidationResult:
    """
    Check that an exclusion pattern is safe to use.

    Args:
        pattern: Regular expression from user settings

    Returns:
        ValidationResult; ``error`` names the reason for a rejection

    Examples:
        >>> validate_pattern("^Draft").is_valid
        True
        >>> validate_pattern("(a*)+").error
        'Pattern contains potentially dangerous constructs'
    """
    if not pattern or not pattern.strip():
        return ValidationResult(False, "Empty pattern")

    if len(pattern) > MAX_PATTERN_LENGTH:
        return ValidationResult(False, "Pattern too long")

    if any(shape.search(pattern) for shape in DANGEROUS_SHAPES):
        return ValidationResult(False, "Pattern contains potentially dangerous constructs")

    try:
        re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        return ValidationResult(False, f"Invalid regex: {e}")

    if not probe_finishes(pattern):
        return ValidationResult(False, "Pattern execution too slow")

    return ValidationResult(True)


def compile_pattern(pattern: str) -> re.Pattern:
    """
    Validate and compile a single exclusion pattern.

    Raises:
        InvalidPattern: If the pattern is rejected
    """
    result = validate_pattern(pattern)
    if not result.is_valid:
        raise InvalidPattern(pattern, result.error or "rejected")
    return re.compile(pattern, re.IGNORECASE)


def compile_exclusions(patterns: list[str]) -> list[re.Pattern]:
    """
    Compile the usable exclusion patterns, skipping rejected ones.

    A rejected pattern never aborts outline generation; it is logged and
    simply excludes nothing.

    Args:
        patterns: Patterns in settings order

    Returns:
        Compiled case-insensitive patterns, in the same order
    """
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(compile_pattern(pattern))
        except InvalidPattern as e:
            logger.warning(
                "exclusion_pattern_skipped",
                pattern=pattern,
                reason=e.reason,
            )
    return compiled
