"""Compilation of user-supplied regular expressions.

Category rules and merchant aliases store a pattern plus a string of flag
letters (``"i"`` by default). Compilation never raises: anything that fails
yields ``None`` so the caller can skip that single rule for the run.
"""

import re

from finance_helper.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_FLAGS = "i"

# Maximum pattern length to prevent overly complex patterns
MAX_PATTERN_LENGTH = 500

# Flag letters as stored by the rule editor. g/u/y/d change nothing for a
# single search and are accepted silently.
FLAG_MAP: dict[str, int] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "g": 0,
    "u": 0,
    "y": 0,
    "d": 0,
}

# Open-ended repetition count such as {2,}
_UNBOUNDED_BRACE_PATTERN = re.compile(r"\{\d*,\}")


def _unbounded_quantifier_length(pattern: str, index: int) -> int:
    """Length of a +, * or {n,} quantifier starting at index, else 0."""
    if index >= len(pattern):
        return 0
    if pattern[index] in "+*":
        return 1
    match = _UNBOUNDED_BRACE_PATTERN.match(pattern, index)
    return len(match.group()) if match else 0


def has_nested_quantifier(pattern: str) -> bool:
    """Check for a repeated group that itself holds an unbounded quantifier.

    Flags patterns such as ``(a+)+`` or ``(\\w*){2,}``, where +, * and {n,}
    appear both inside a group and on the group.

    Optional groups such as ``(?:x)?`` or ``(online\\s+)?`` are fine: ``?``
    never counts as an unbounded quantifier, and the ``(?`` prefix of group
    syntax is skipped. Escapes and character classes are stepped over.
    """
    # One entry per open group: whether it contains an unbounded quantifier
    groups: list[bool] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            i += 2
            continue
        if char == "[":
            i += 1
            if pattern.startswith("^", i):
                i += 1
            if pattern.startswith("]", i):
                i += 1
            while i < len(pattern) and pattern[i] != "]":
                i += 2 if pattern[i] == "\\" else 1
            i += 1
            continue
        if char == "(":
            groups.append(False)
            i += 1
            if pattern.startswith("?", i):
                i += 1
            continue
        if char == ")":
            inner = groups.pop() if groups else False
            i += 1
            length = _unbounded_quantifier_length(pattern, i)
            if inner and length:
                return True
            if groups and (inner or length):
                groups[-1] = True
            i += length
            continue
        length = _unbounded_quantifier_length(pattern, i)
        if length:
            if groups:
                groups[-1] = True
            i += length
            continue
        i += 1
    return False


def is_safe_pattern(pattern: str) -> tuple[bool, str]:
    """Check whether a pattern is safe from catastrophic backtracking.

    Args:
        pattern: Regex source text.

    Returns:
        Tuple of (is_safe, reason if unsafe).
    """
    if len(pattern) > MAX_PATTERN_LENGTH:
        return False, f"pattern exceeds {MAX_PATTERN_LENGTH} character limit"
    if has_nested_quantifier(pattern):
        return False, "pattern contains a nested quantifier"
    return True, ""


def translate_flags(flags: str | None) -> int:
    """Convert a flag-letter string into ``re`` flags.

    Args:
        flags: Flag letters; None means the default ``"i"``.

    Returns:
        Combined ``re`` flag value.

    Raises:
        ValueError: On an unknown or repeated flag letter.
    """
    if flags is None:
        flags = DEFAULT_FLAGS

    value = 0
    seen: set[str] = set()
    for letter in flags:
        if letter not in FLAG_MAP:
            raise ValueError(f"unknown regex flag {letter!r}")
        if letter in seen:
            raise ValueError(f"repeated regex flag {letter!r}")
        seen.add(letter)
        value |= FLAG_MAP[letter]
    return value


def compile_user_pattern(
    pattern: str,
    flags: str | None = DEFAULT_FLAGS,
    owner: str = "rule",
) -> re.Pattern[str] | None:
    """Compile a user pattern, returning None instead of raising.

    Args:
        pattern: Regex source text.
        flags: Flag letters (None means ``"i"``).
        owner: Description of the rule/alias for log messages.

    Returns:
        Compiled pattern, or None if the pattern is empty, unsafe, or invalid.
    """
    if not pattern:
        logger.warning(f"Skipping {owner}: empty pattern")
        return None

    is_safe, reason = is_safe_pattern(pattern)
    if not is_safe:
        logger.warning(f"Skipping {owner} with unsafe pattern {pattern!r}: {reason}")
        return None

    try:
        return re.compile(pattern, translate_flags(flags))
    except (re.error, ValueError) as e:
        logger.warning(f"Skipping {owner} with invalid pattern {pattern!r}: {e}")
        return None
