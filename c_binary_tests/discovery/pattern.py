"""Basename wildcard patterns."""

import re


def pattern_basename(pattern: str) -> str:
    """Return the last path segment of *pattern*.

    Patterns only ever match file basenames, so directory parts are dropped.
    """
    return re.split(r"[\\/]", pattern)[-1]


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a basename wildcard into an anchored regular expression.

    ``*`` matches zero or more characters; every other character, regex
    metacharacters included, matches literally.

    Examples:
        >>> bool(compile_pattern("test_*").fullmatch("test_foo"))
        True
        >>> bool(compile_pattern("*_test").fullmatch("foo_test_bar"))
        False

    """
    parts = pattern_basename(pattern).split("*")
    return re.compile(".*".join(re.escape(part) for part in parts), re.DOTALL)


def matches(pattern: re.Pattern[str], basename: str) -> bool:
    """Check whether *basename* matches a compiled pattern in full."""
    return pattern.fullmatch(basename) is not None
