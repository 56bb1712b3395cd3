"""Crate Document — pure operations on an RO-Crate JSON-LD document.

Invariants:
    - A crate is {"@context": ..., "@graph": [node, ...]}; every node has an "@id"
    - At most one node per "@id" in the graph (upsert replaces in place)
    - Removing a node also removes every reference {"@id": <removed>} held by other nodes
    - Renaming a node repoints every reference to it
    - The metadata descriptor and root dataset are never removed

Design Decisions:
    - Pure functions returning the mutated document: the crate manager owns IO
    - Multi-valued properties are lists; single values stay scalar (RO-Crate convention)
"""

from crate_api.core.domain_types import (
    CrateActionName, DATASET_TYPE, ROOT_DATASET_EID,
)

RO_CRATE_CONTEXT = "https://w3id.org/ro/crate/1.1/context"
METADATA_DESCRIPTOR_ID = "ro-crate-metadata.json"

_PROTECTED_IDS = frozenset({METADATA_DESCRIPTOR_ID, ROOT_DATASET_EID})


def empty_crate() -> dict:
    """Fresh RO-Crate 1.1 skeleton: metadata descriptor + root dataset."""
    return {
        "@context": RO_CRATE_CONTEXT,
        "@graph": [
            {
                "@id": METADATA_DESCRIPTOR_ID,
                "@type": "CreativeWork",
                "conformsTo": {"@id": "https://w3id.org/ro/crate/1.1"},
                "about": {"@id": ROOT_DATASET_EID},
            },
            {"@id": ROOT_DATASET_EID, "@type": DATASET_TYPE},
        ],
    }


def render_entity(entity: dict) -> dict:
    """Render an entity dict (as returned by the data layer) as a JSON-LD node."""
    node: dict = {"@id": entity["eid"], "@type": entity["etype"]}
    if entity.get("name") is not None:
        node["name"] = entity["name"]
    for prop in entity.get("properties", []):
        if prop.get("tgtEid"):
            value = {"@id": prop["tgtEid"]}
        else:
            value = prop.get("value")
        _add_value(node, prop["property"], value)
    return node


def _add_value(node: dict, key: str, value) -> None:
    if key not in node:
        node[key] = value
    elif isinstance(node[key], list):
        node[key].append(value)
    else:
        node[key] = [node[key], value]


def find_node(crate: dict, node_id: str) -> dict | None:
    for node in crate.get("@graph", []):
        if node.get("@id") == node_id:
            return node
    return None


def upsert_node(crate: dict, node: dict) -> dict:
    """Insert node, or replace the node holding the same @id."""
    graph = crate.setdefault("@graph", [])
    for i, existing in enumerate(graph):
        if existing.get("@id") == node["@id"]:
            graph[i] = node
            return crate
    graph.append(node)
    return crate


def remove_node(crate: dict, node_id: str) -> dict:
    """Drop node and strip references to it from every other node."""
    if node_id in _PROTECTED_IDS:
        return crate
    graph = [n for n in crate.get("@graph", []) if n.get("@id") != node_id]
    for node in graph:
        for key in list(node.keys()):
            if key.startswith("@"):
                continue
            stripped = _strip_reference(node[key], node_id)
            if stripped is _REMOVED:
                del node[key]
            else:
                node[key] = stripped
    crate["@graph"] = graph
    return crate


def rename_node(crate: dict, old_id: str, new_id: str) -> dict:
    """Re-key node old_id as new_id and repoint every {"@id": old_id} reference.

    If a node already holds new_id, the old node is dropped instead of
    re-keyed; references are repointed either way.
    """
    if old_id == new_id or old_id in _PROTECTED_IDS:
        return crate
    graph = crate.get("@graph", [])
    target_exists = any(n.get("@id") == new_id for n in graph)
    renamed = []
    for node in graph:
        if node.get("@id") == old_id:
            if target_exists:
                continue
            node["@id"] = new_id
        for key in node:
            if not key.startswith("@"):
                node[key] = _repoint(node[key], old_id, new_id)
        renamed.append(node)
    crate["@graph"] = renamed
    return crate


def _repoint(value, old_id: str, new_id: str):
    if _is_reference_to(value, old_id):
        return {**value, "@id": new_id}
    if isinstance(value, list):
        return [_repoint(v, old_id, new_id) for v in value]
    return value


_REMOVED = object()


def _is_reference_to(value, node_id: str) -> bool:
    return isinstance(value, dict) and value.get("@id") == node_id


def _strip_reference(value, node_id: str):
    if _is_reference_to(value, node_id):
        return _REMOVED
    if isinstance(value, list):
        kept = [v for v in value if not _is_reference_to(v, node_id)]
        if not kept:
            return _REMOVED
        return kept[0] if len(kept) == 1 else kept
    return value


def crate_action(name: CrateActionName, entity: dict) -> dict:
    """One change record replayed onto the crate by the crate manager."""
    return {"name": name.value, "entity": entity}
