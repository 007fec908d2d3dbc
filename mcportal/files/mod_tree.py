"""
Hierarchical listing of a server's downloadable mod files.

The tree is built first and each directory level is then sorted with a
pure key function, so the ordering can be tested without a filesystem:

1. the node at exactly `current_version_path`
2. folders on the way to `current_version_path`
3. other folders
4. files and links, case-insensitively by name
"""

import re
from pathlib import Path
from typing import Iterable, List, Optional

import aiofiles
from aiofiles import os as aioos

from ..logger import logger
from .sandbox import canonical_path, is_contained
from .types import FileNode, FileTreeNode, FolderNode, LinkNode

SHORTCUT_EXTENSION = ".url"
_SHORTCUT_MAX_BYTES = 64 * 1024
_URL_LINE_PATTERN = re.compile(r"^[ \t]*URL=(.+)$", re.MULTILINE)


def parse_shortcut(content: str) -> Optional[str]:
    """Extract the target of a `URL=<value>` line; the first match wins."""
    match = _URL_LINE_PATTERN.search(content)
    if match is None:
        return None
    return match.group(1).strip() or None


def node_sort_key(
    node: FileTreeNode, current_version_path: Optional[str]
) -> tuple[bool, bool, bool, str]:
    is_current = bool(current_version_path) and node.relative_path == current_version_path
    is_ancestor = bool(current_version_path) and current_version_path.startswith(
        node.relative_path + "/"
    )
    return (
        not is_current,
        not is_ancestor,
        not isinstance(node, FolderNode),
        node.name.casefold(),
    )


def sort_nodes(
    nodes: Iterable[FileTreeNode], current_version_path: Optional[str]
) -> List[FileTreeNode]:
    """Sort a single directory level. Children are left untouched."""
    return sorted(nodes, key=lambda node: node_sort_key(node, current_version_path))


def _join(relative_path: str, name: str) -> str:
    return f"{relative_path}/{name}" if relative_path else name


async def _read_shortcut(path: Path) -> Optional[str]:
    async with aiofiles.open(path, "rb") as f:
        data = await f.read(_SHORTCUT_MAX_BYTES)
    return parse_shortcut(data.decode("utf-8", errors="replace"))


async def _build_level(
    directory: Path,
    relative_path: str,
    current_version_path: Optional[str],
    real_root: str,
    ancestors: frozenset[str],
) -> List[FileTreeNode]:
    """List one directory. `ancestors` holds the canonical paths of every
    directory on the way down, including this one."""
    nodes: List[FileTreeNode] = []

    try:
        names = await aioos.listdir(directory)
    except PermissionError:
        logger.warning(f"Permission denied while listing {directory}")
        return nodes

    for name in names:
        item_path = directory / name
        item_relative = _join(relative_path, name)

        try:
            if await aioos.path.isdir(item_path):
                real_path = await canonical_path(str(item_path))
                if not is_contained(real_root, real_path):
                    logger.warning(
                        f"Skipping mod folder {item_relative} outside of the mod root"
                    )
                    continue
                if real_path in ancestors:
                    logger.debug(f"Skipping symlink loop at {item_relative}")
                    continue
                children = await _build_level(
                    item_path,
                    item_relative,
                    current_version_path,
                    real_root,
                    ancestors | {real_path},
                )
                nodes.append(
                    FolderNode(name=name, relative_path=item_relative, children=children)
                )
            elif name.lower().endswith(SHORTCUT_EXTENSION):
                target_url = await _read_shortcut(item_path)
                if target_url is None:
                    continue
                nodes.append(
                    LinkNode(
                        name=name[: -len(SHORTCUT_EXTENSION)],
                        relative_path=item_relative,
                        target_url=target_url,
                    )
                )
            elif await aioos.path.isfile(item_path):
                stat_result = await aioos.stat(item_path)
                nodes.append(
                    FileNode(
                        name=name,
                        relative_path=item_relative,
                        size_bytes=stat_result.st_size,
                    )
                )
        except OSError as e:
            logger.warning(f"Skipping unreadable mod entry {item_relative}: {e}")

    return sort_nodes(nodes, current_version_path)


async def build_mod_tree(
    mod_root: Path, current_version_path: Optional[str] = None
) -> List[FileTreeNode]:
    """Build the sorted tree below `mod_root`. A missing root yields no nodes."""
    if not await aioos.path.isdir(mod_root):
        return []
    if current_version_path:
        current_version_path = current_version_path.replace("\\", "/").strip("/")
    real_root = await canonical_path(str(mod_root))
    return await _build_level(
        mod_root, "", current_version_path or None, real_root, frozenset({real_root})
    )
