"""Path safety checks for joining client-supplied paths onto served roots.

Two layers, both mandatory:

* ``is_safe_relative_path`` is purely syntactic and rejects anything that
  looks like traversal or an absolute path without touching the disk.
* ``is_within_root`` canonicalises against the real filesystem (symlinks
  resolved) and fails closed whenever resolution is impossible.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePath
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]


def is_safe_relative_path(path: str) -> bool:
    """Return True if ``path`` may be joined to a root without escaping it.

    The ``..`` rule is deliberately broad: ``a..b`` is rejected as well.
    A leading ``@`` is fine since scoped package names start with it.
    """
    if ".." in path or "//" in path or "\\" in path:
        return False

    if path.startswith("/") and not path.startswith("@"):
        return False

    pure = PurePath(path)
    if pure.is_absolute() or os.path.isabs(path):
        return False

    # root or drive markers show up as the anchor
    if pure.anchor:
        return False
    return all(part not in (os.pardir, os.sep, "/") for part in pure.parts)


def is_within_root(candidate: PathLike, root: PathLike) -> bool:
    """Return True if ``candidate`` resolves to ``root`` or a descendant of it.

    When ``candidate`` does not exist yet its parent directory is resolved
    instead. Any resolution failure counts as outside the root.
    """
    try:
        resolved_root = Path(root).resolve(strict=True)
    except (OSError, RuntimeError):
        return False

    target = Path(candidate)
    try:
        resolved = target.resolve(strict=True)
    except (OSError, RuntimeError):
        try:
            resolved = target.parent.resolve(strict=True)
        except (OSError, RuntimeError):
            return False

    return resolved.is_relative_to(resolved_root)
