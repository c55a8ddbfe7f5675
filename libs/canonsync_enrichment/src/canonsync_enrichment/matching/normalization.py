"""Title normalization for fuzzy comparison against the AniDB title corpus."""

import re

# Release markers as they appear inside AniDB titles, with their leading space.
# Longer markers come first so " part ii" is never cut down to " part i".
RELEASE_MARKERS = (
    " (tv)",
    " (ova)",
    " (movie)",
    " (special)",
    " (ona)",
    " season 1",
    " season 2",
    " season 3",
    " season 4",
    " season 5",
    " 1st season",
    " 2nd season",
    " 3rd season",
    " 4th season",
    " 5th season",
    " first season",
    " second season",
    " third season",
    " fourth season",
    " part ii",
    " part 1",
    " part 2",
    " part i",
    " the animation",
    " the movie",
)

# A marker must end at a word boundary: " season 1" never eats into " season 12"
_MARKER_PATTERN = re.compile(
    "|".join(re.escape(marker) + r"(?!\w)" for marker in RELEASE_MARKERS)
)
_TRAILING_YEAR_PATTERN = re.compile(r"(?:\s*\(\d{4}\))+$")


def _normalize_once(title: str) -> str:
    stripped = _MARKER_PATTERN.sub("", title)
    stripped = _TRAILING_YEAR_PATTERN.sub("", stripped.strip())
    return stripped.strip()


def normalize_title(title: str) -> str:
    """Canonicalize a title for comparison.

    Lower-cases the title, removes every release marker, strips trailing
    parenthesized years such as ``(2020)`` and trims whitespace. Punctuation
    left behind by a removal is kept, so ``"Demon Slayer: The Movie"``
    becomes ``"demon slayer:"``.

    The result is a fixed point: ``normalize_title(normalize_title(t)) ==
    normalize_title(t)`` for every input.

    Args:
        title: Raw title, possibly empty.

    Returns:
        Normalized title. Never raises.
    """
    current = title.lower()
    while True:
        reduced = _normalize_once(current)
        if reduced == current:
            return current
        current = reduced
