"""File Tree — turns a flat file listing into an ordered folder/file plan.

Invariants:
    - Folder eids end with "/", file eids never do
    - Parents always precede their children in the plan
    - Each eid appears once, first occurrence wins
    - Top-level items have parent_eid "./" (the root dataset)

Design Decisions:
    - Pure planner, no DB: the service layer reconciles the plan with existing entities
    - Storage metadata mapped to schema.org names (contentSize, encodingFormat, dateModified)
"""

from dataclasses import dataclass, field

from crate_api.core.domain_types import DATASET_TYPE, FILE_TYPE, ROOT_DATASET_EID

_METADATA_KEYS = {
    "size": "contentSize",
    "mimeType": "encodingFormat",
    "modTime": "dateModified",
}


@dataclass
class FileTreeNode:
    eid: str
    etype: str
    name: str
    parent_eid: str
    properties: dict[str, str] = field(default_factory=dict)


def normalize_path(path: str) -> list[str]:
    """Split a path into clean segments ("./a//b/" -> ["a", "b"])."""
    return [s for s in path.replace("\\", "/").split("/") if s and s != "."]


def _folder_eid(segments: list[str]) -> str:
    return "/".join(segments) + "/"


def plan_file_tree(files: list[dict]) -> list[FileTreeNode]:
    """Expand file items into folder and file nodes, parents first.

    Each item needs a "path"; "isDir" marks folders. Items without a usable
    path raise ValueError.
    """
    plan: dict[str, FileTreeNode] = {}
    for item in files:
        if not isinstance(item, dict) or not item.get("path"):
            raise ValueError("Every file must have a path")
        segments = normalize_path(str(item["path"]))
        if not segments:
            raise ValueError(f"Invalid file path '{item['path']}'")

        is_dir = bool(item.get("isDir"))
        folder_segments = segments if is_dir else segments[:-1]

        parent = ROOT_DATASET_EID
        for depth in range(1, len(folder_segments) + 1):
            eid = _folder_eid(folder_segments[:depth])
            if eid not in plan:
                plan[eid] = FileTreeNode(
                    eid=eid, etype=DATASET_TYPE,
                    name=folder_segments[depth - 1], parent_eid=parent,
                )
            parent = eid

        if is_dir:
            continue
        eid = "/".join(segments)
        if eid in plan:
            continue
        plan[eid] = FileTreeNode(
            eid=eid, etype=FILE_TYPE, name=segments[-1], parent_eid=parent,
            properties={
                target: str(item[source])
                for source, target in _METADATA_KEYS.items()
                if item.get(source) is not None
            },
        )
    return list(plan.values())
