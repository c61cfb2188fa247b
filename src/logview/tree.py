"""Recursive directory walk into an ordered FileTreeNode tree."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import List, Optional

from logview.models import FileTreeNode

LOGGER = logging.getLogger(__name__)


def _sort_key(node: FileTreeNode) -> tuple[bool, str]:
    return (not node.is_dir, node.name)


def _child_path(prefix: str, name: str) -> str:
    return f"{prefix}/{name}" if prefix else name


def build_tree(
    root: Path | str,
    relative: str = "",
    skipped: Optional[List[str]] = None,
) -> FileTreeNode:
    """Build the tree rooted at ``root``.

    Children that cannot be stat'ed or listed are left out of the result; when
    ``skipped`` is given their relative paths are appended to it. Only a
    failure on ``root`` itself propagates as :class:`OSError`.
    """
    info = os.stat(root)
    name = os.path.basename(os.path.normpath(root))

    if not stat.S_ISDIR(info.st_mode):
        return FileTreeNode(name=name, path=relative, type="file", size=info.st_size)

    children: List[FileTreeNode] = []
    for entry_name in os.listdir(root):
        child_relative = _child_path(relative, entry_name)
        try:
            child = build_tree(os.path.join(root, entry_name), child_relative, skipped)
        except OSError as exc:
            LOGGER.debug("Skipping %s: %s", child_relative, exc)
            if skipped is not None:
                skipped.append(child_relative)
            continue
        children.append(child)

    children.sort(key=_sort_key)
    return FileTreeNode(name=name, path=relative, type="directory", children=tuple(children))
