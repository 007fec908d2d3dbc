"""
File type definitions shared by the asset resolver and the mod tree.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class ResolvedAsset:
    """A file that passed containment checks and is safe to serve"""

    absolute_path: Path
    mime_type: str
    size_bytes: int


# Mod tree nodes. `relative_path` is relative to the server's mod root and
# always uses forward slashes.
class FolderNode(BaseModel):
    type: Literal["folder"] = "folder"
    name: str
    relative_path: str
    children: List["FileTreeNode"] = Field(default_factory=list)


class FileNode(BaseModel):
    type: Literal["file"] = "file"
    name: str
    relative_path: str
    size_bytes: int = Field(ge=0)


class LinkNode(BaseModel):
    """Stands in for an artifact hosted elsewhere (from a .url shortcut file)"""

    type: Literal["link"] = "link"
    name: str
    relative_path: str
    target_url: str


FileTreeNode = Annotated[
    Union[FolderNode, FileNode, LinkNode], Field(discriminator="type")
]

FolderNode.model_rebuild()
