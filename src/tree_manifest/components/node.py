from __future__ import annotations

import json
from enum import StrEnum
from typing import Annotated, Any, Iterator, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class NodeKind(StrEnum):
    FILE = "file"
    DIRECTORY = "directory"


class FileNode(BaseModel):
    """A scanned file. Enhancement may attach arbitrary extra attributes."""

    model_config = ConfigDict(extra="allow")

    path: str
    kind: Literal["file"] = Field(default=NodeKind.FILE.value, frozen=True)

    @model_validator(mode="after")
    def _reject_children(self) -> "FileNode":
        if self.model_extra and "children" in self.model_extra:
            raise ValueError(f"file node {self.path!r} cannot carry children")
        return self


class DirectoryNode(BaseModel):
    """A scanned directory; ``children`` keeps scan order."""

    model_config = ConfigDict(extra="allow")

    path: str
    kind: Literal["directory"] = Field(default=NodeKind.DIRECTORY.value, frozen=True)
    children: List[TreeNode] = Field(default_factory=list)


TreeNode = Annotated[Union[FileNode, DirectoryNode], Field(discriminator="kind")]

# A single root, or one root per configured directory.
Tree = Union[TreeNode, List[TreeNode]]

DirectoryNode.model_rebuild()

_TREE_ADAPTER: TypeAdapter[Any] = TypeAdapter(Tree)


def roots_of(tree: Tree) -> list[FileNode | DirectoryNode]:
    """Return the top-level nodes of *tree* as a list, whatever its shape."""
    if isinstance(tree, list):
        return list(tree)
    return [tree]


def iter_nodes(tree: Tree) -> Iterator[FileNode | DirectoryNode]:
    """Yield every node depth-first, parents before children, roots in order."""
    stack = list(reversed(roots_of(tree)))
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, DirectoryNode):
            stack.extend(reversed(node.children))


def to_plain(tree: Tree) -> Any:
    """Convert *tree* into plain JSON-compatible dicts and lists."""
    if isinstance(tree, list):
        return [node.model_dump(mode="json") for node in tree]
    return tree.model_dump(mode="json")


def dump_tree(tree: Tree) -> str:
    """Serialize *tree* to its canonical compact JSON form.

    Declared fields come first (``path``, ``kind``, ``children``), followed
    by enhancement attributes in the order they were attached. No
    whitespace is emitted between tokens and non-ASCII text is kept as-is,
    so unchanged input always yields the same bytes.
    """
    return json.dumps(to_plain(tree), ensure_ascii=False, separators=(",", ":"))


def parse_tree(text: str | bytes) -> Tree:
    """Parse a manifest produced by :func:`dump_tree` back into nodes."""
    return _TREE_ADAPTER.validate_json(text)
