"""
Extracts branch commit hashes from the ref listings printed by
``git show-ref --head`` and ``git ls-remote``.

Each listing line looks like ``<40 hex chars><whitespace><ref path>``.
Extraction never raises: no match (or unusable input) gives an empty string.
"""

import re

HASH_LENGTH = 40


def branch_pattern(branch: str):
    """Compile the line matcher for ``refs/heads/<branch>``."""
    return re.compile(
        r"^([0-9a-f]{%d})[ \t]+(?:\S*/)?refs/heads/%s\r?$" % (HASH_LENGTH, re.escape(branch)),
        re.MULTILINE,
    )


def extract_hash(output, branch: str) -> str:
    """Return the first hash listed for ``branch`` or "" if there is none."""
    if not output or not isinstance(output, str) or not branch:
        return ""
    match = branch_pattern(branch).search(output)
    if not match:
        return ""
    return match.group(1)
