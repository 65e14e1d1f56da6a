import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from shapetrack.canonical.descriptor import TypeMetadata
from shapetrack.governance.conflict_reporter import ConflictReporter
from shapetrack.observability.logger import Timer, log_event
from shapetrack.outputs.example_builder import get_example_object
from shapetrack.pipeline.node_operations import (
    add_node,
    add_nodes,
    delete_node,
    ignore,
)
from shapetrack.settings import InferenceSettings


class MetadataRegistry:
    """
    Shape metadata for every node type of a build, keyed by type name.

    In memory only. Not thread safe: one writer per registry.
    """

    def __init__(self, settings: Optional[InferenceSettings] = None):
        self.settings = settings or InferenceSettings()
        self.settings.validate()
        self.data: Dict[str, TypeMetadata] = {}

    def _initial_metadata(self, type_name: str) -> TypeMetadata:
        return TypeMetadata(
            type_name=type_name,
            ignored_fields=set(self.settings.ignored_fields),
            id_field=self.settings.id_field,
        )

    def _metadata_for(self, type_name: str) -> TypeMetadata:
        if type_name not in self.data:
            self.data[type_name] = self._initial_metadata(type_name)
        return self.data[type_name]

    # --------------------------------------------------
    # READ OPERATIONS
    # --------------------------------------------------

    def get(self, type_name: str) -> Optional[TypeMetadata]:
        return self.data.get(type_name)

    def type_names(self) -> List[str]:
        return list(self.data.keys())

    def __contains__(self, type_name: str) -> bool:
        return type_name in self.data

    def dirty_types(self) -> List[str]:
        return [name for name, metadata in self.data.items() if metadata.dirty]

    def get_example_object(
        self,
        type_name: str,
        reporter: Optional[ConflictReporter] = None,
    ) -> Dict[str, Any]:
        metadata = self.data.get(type_name)
        if metadata is None or metadata.ignored:
            return {}

        if not self.settings.report_conflicts:
            reporter = None

        return get_example_object(metadata.field_map, type_name, reporter)

    # --------------------------------------------------
    # WRITE OPERATIONS
    # --------------------------------------------------

    def create_node(
        self,
        type_name: str,
        node: Mapping[str, Any],
        old_node: Optional[Mapping[str, Any]] = None,
    ) -> TypeMetadata:
        """
        Track a new node, or an updated one when old_node is given.
        """
        metadata = self._metadata_for(type_name)
        if old_node is not None:
            metadata = delete_node(metadata, old_node)
        return add_node(metadata, node)

    def delete_node(self, type_name: str, node: Mapping[str, Any]) -> TypeMetadata:
        return delete_node(self._metadata_for(type_name), node)

    def add_field_to_node(
        self,
        type_name: str,
        node: Mapping[str, Any],
        field_name: str,
    ) -> TypeMetadata:
        id_field = self.settings.id_field
        partial = {id_field: node.get(id_field), field_name: node.get(field_name)}
        return add_node(self._metadata_for(type_name), partial)

    def disable_inference(self, type_names: Iterable[str]):
        for type_name in type_names:
            ignore(self._metadata_for(type_name), True)
            log_event(
                "TYPE_INFERENCE_DISABLED",
                {"type_name": type_name},
                level=logging.DEBUG,
            )

    def build(
        self,
        type_name: str,
        nodes: Iterable[Mapping[str, Any]],
    ) -> TypeMetadata:
        """
        Replace the metadata of a type with one built from `nodes`.
        A disabled type stays disabled and is not populated.
        """
        timer = Timer()
        count = 0

        def counted(items):
            nonlocal count
            for item in items:
                count += 1
                yield item

        metadata = self._initial_metadata(type_name)

        previous = self.data.get(type_name)
        if previous is not None and previous.ignored:
            ignore(metadata, True)

        metadata = add_nodes(metadata, counted(nodes))
        self.data[type_name] = metadata

        log_event(
            "TYPE_METADATA_BUILT",
            {
                "type_name": type_name,
                "node_count": count,
                "field_count": len(metadata.field_map),
                "duration_seconds": timer.duration(),
            },
        )
        return metadata

    def clear(self):
        self.data = {}
        log_event("TYPE_METADATA_CLEARED", {}, level=logging.DEBUG)
