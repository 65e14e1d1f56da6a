import logging
from typing import Any, Iterable, List, Mapping, Optional

from shapetrack.canonical.descriptor import TypeMetadata
from shapetrack.inference.descriptor_updater import (
    JournalEntry,
    Operation,
    journal_key,
    undo_updates,
    update_value_descriptor,
)
from shapetrack.observability.logger import log_event
from shapetrack.utils.exceptions import UnmatchedDeleteError


def _node_fields(metadata: TypeMetadata, node: Mapping[str, Any]) -> List[str]:
    return [key for key in node.keys() if key not in metadata.ignored_fields]


def _apply(
    metadata: TypeMetadata,
    node: Mapping[str, Any],
    operation: Operation,
    underflows: Optional[List[str]] = None,
    journal: Optional[List[JournalEntry]] = None,
) -> bool:
    node_id = node.get(metadata.id_field)
    structure_changed = False

    for field_name in _node_fields(metadata, node):
        descriptor, value_changed = update_value_descriptor(
            metadata.field_map.get(field_name),
            field_name,
            node[field_name],
            operation,
            node_id,
            underflows,
            field_name,
            journal,
        )
        journal_key(journal, metadata.field_map, field_name)
        metadata.field_map[field_name] = descriptor
        structure_changed = structure_changed or value_changed

    return structure_changed


def _update_type_metadata(
    metadata: Optional[TypeMetadata],
    operation: Operation,
    node: Mapping[str, Any],
) -> TypeMetadata:
    if metadata is None:
        metadata = TypeMetadata()

    if metadata.ignored:
        return metadata

    if operation == Operation.ADD:
        structure_changed = _apply(metadata, node, Operation.ADD)
        metadata.dirty = metadata.dirty or structure_changed
        return metadata

    underflows: List[str] = []
    journal: List[JournalEntry] = []
    structure_changed = _apply(metadata, node, Operation.DEL, underflows, journal)

    if underflows:
        undo_updates(journal)

        node_id = node.get(metadata.id_field)
        log_event(
            "UNMATCHED_DELETE",
            {
                "type_name": metadata.type_name,
                "node_id": node_id,
                "paths": underflows,
            },
            level=logging.WARNING,
        )
        raise UnmatchedDeleteError(node_id, underflows)

    metadata.dirty = metadata.dirty or structure_changed
    return metadata


def add_node(metadata: Optional[TypeMetadata], node: Mapping[str, Any]) -> TypeMetadata:
    return _update_type_metadata(metadata, Operation.ADD, node)


def delete_node(metadata: Optional[TypeMetadata], node: Mapping[str, Any]) -> TypeMetadata:
    """
    Remove a previously added record.

    Raises UnmatchedDeleteError (leaving the metadata untouched) when the
    record was never added.
    """
    return _update_type_metadata(metadata, Operation.DEL, node)


def add_nodes(
    metadata: Optional[TypeMetadata], nodes: Iterable[Mapping[str, Any]]
) -> TypeMetadata:
    if metadata is None:
        metadata = TypeMetadata()
    for node in nodes:
        metadata = add_node(metadata, node)
    return metadata


def ignore(metadata: Optional[TypeMetadata], flag: bool = True) -> TypeMetadata:
    """
    Sticky: while set, add_node and delete_node leave the metadata alone.
    """
    if metadata is None:
        metadata = TypeMetadata()
    metadata.ignored = flag
    return metadata


def is_empty(metadata: TypeMetadata) -> bool:
    return all(
        not descriptor.possible_types()
        for descriptor in metadata.field_map.values()
    )


def consume_dirty(metadata: TypeMetadata) -> bool:
    """
    Return whether the shape changed since the last call, and reset the flag.
    """
    dirty = metadata.dirty
    metadata.dirty = False
    return dirty
