"""
File handling for the gateway:
- Sandboxed resolution of static assets (map mirror, mod downloads)
- Mod directory tree building and ordering
"""

from .mod_tree import (
    SHORTCUT_EXTENSION,
    build_mod_tree,
    node_sort_key,
    parse_shortcut,
    sort_nodes,
)
from .sandbox import INDEX_FILE, guess_mime_type, is_contained, resolve_asset
from .types import FileNode, FileTreeNode, FolderNode, LinkNode, ResolvedAsset

__all__ = [
    # Types
    "FileNode",
    "FileTreeNode",
    "FolderNode",
    "LinkNode",
    "ResolvedAsset",
    # Sandbox
    "INDEX_FILE",
    "guess_mime_type",
    "is_contained",
    "resolve_asset",
    # Mod tree
    "SHORTCUT_EXTENSION",
    "build_mod_tree",
    "node_sort_key",
    "parse_shortcut",
    "sort_nodes",
]
