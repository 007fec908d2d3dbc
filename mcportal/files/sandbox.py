"""
Sandboxed static file resolution.

Paths are resolved to their canonical, symlink-free form before the
containment check, so neither `..` segments nor symlinks pointing out of
the root can escape it.
"""

import mimetypes
import os
from pathlib import Path
from typing import Optional

import aiofiles
from aiofiles import os as aioos
from asyncer import asyncify

from ..errors import NotFoundError
from ..logger import logger
from .types import ResolvedAsset

INDEX_FILE = "index.html"
_SNIFF_BYTES = 512


@asyncify
def canonical_path(path: str) -> str:
    """Canonicalize a path, resolving `.`, `..` and symlinks."""
    return os.path.realpath(path)


def is_contained(root: str, target: str) -> bool:
    """Whether canonical `target` is `root` itself or lies below it."""
    return target == root or target.startswith(root.rstrip(os.sep) + os.sep)


async def _sniff_mime_type(path: str) -> str:
    async with aiofiles.open(path, "rb") as f:
        head = await f.read(_SNIFF_BYTES)
    if b"\x00" in head:
        return "application/octet-stream"
    try:
        head.decode("utf-8")
    except UnicodeDecodeError:
        # A multi-byte character may be cut at the sniff boundary
        try:
            head[:-3].decode("utf-8")
        except UnicodeDecodeError:
            return "application/octet-stream"
    return "text/plain"


async def guess_mime_type(path: str) -> str:
    """MIME type from the file extension, falling back to the file contents."""
    mime_type, encoding = mimetypes.guess_type(path)
    if encoding == "gzip":
        return "application/gzip"
    if mime_type:
        return mime_type
    return await _sniff_mime_type(path)


async def _resolve_candidate(root: str, candidate: str) -> Optional[ResolvedAsset]:
    real_path = await canonical_path(candidate)
    if not is_contained(root, real_path):
        logger.warning(f"Rejected path outside of sandbox root {root}: {candidate}")
        return None
    if not await aioos.path.isfile(real_path):
        return None

    stat_result = await aioos.stat(real_path)
    return ResolvedAsset(
        absolute_path=Path(real_path),
        mime_type=await guess_mime_type(real_path),
        size_bytes=stat_result.st_size,
    )


async def resolve_asset(
    web_root: Path, requested_sub_path: str, index_fallback: bool = True
) -> ResolvedAsset:
    """Resolve a request path below `web_root` to a servable file.

    An empty path (or `/`) maps to `index.html`. When the target is not a
    regular file and `index_fallback` is set, `target/index.html` is tried
    under the same rules.

    Raises:
        NotFoundError: If no contained regular file matches.
    """
    try:
        root = await canonical_path(os.fspath(web_root))
        if await aioos.path.isdir(root):
            relative = requested_sub_path.lstrip("/")
            if not relative:
                candidates = [os.path.join(root, INDEX_FILE)]
            else:
                target = os.path.join(root, relative)
                candidates = [target]
                if index_fallback:
                    candidates.append(os.path.join(target, INDEX_FILE))

            for candidate in candidates:
                asset = await _resolve_candidate(root, candidate)
                if asset is not None:
                    return asset
    except (OSError, ValueError) as e:
        # ValueError covers embedded NUL bytes
        logger.debug(f"Failed to resolve '{requested_sub_path}' in {web_root}: {e}")

    raise NotFoundError("File not found.")
