from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set


class TypeTag(str, Enum):
    """
    Semantic type of a single observed value.
    NULL carries no structural information and is never stored.
    """
    INT = "int"
    FLOAT = "float"
    DATE = "date"
    STRING = "string"
    BOOLEAN = "boolean"
    ARRAY = "array"
    LIST_OF_UNION = "listOfUnion"
    OBJECT = "object"
    NULL = "null"


@dataclass
class TypeInfo:
    """
    Statistics for one semantic type at one field position.

    Only the attributes relevant to the tag are used:
    - example: scalar tags
    - empty: string
    - props: object
    - item: array
    - nodes: listOfUnion
    """
    total: int = 0
    first: Optional[str] = None
    example: Any = None
    empty: int = 0

    props: Dict[str, "ValueDescriptor"] = field(default_factory=dict)
    item: Optional["ValueDescriptor"] = None
    nodes: Dict[str, int] = field(default_factory=dict)


@dataclass
class ValueDescriptor:
    """
    Everything observed at one field position, keyed by type tag.
    Tags keep the order in which they were first observed.
    A missing tag means zero observations of that type.
    """
    types: Dict[TypeTag, TypeInfo] = field(default_factory=dict)

    def get(self, tag: TypeTag) -> Optional[TypeInfo]:
        return self.types.get(tag)

    def possible_types(self) -> List[TypeTag]:
        return [tag for tag, info in self.types.items() if info.total > 0]

    def first_seen_in(self, tag: TypeTag) -> Optional[str]:
        """
        Id of the record credited with introducing `tag` here.

        Approximate: only meant for grouping array item conflicts by
        the record they came from.
        """
        info = self.types.get(tag)
        return info.first if info else None

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for tag, info in self.types.items():
            entry: Dict[str, Any] = {"total": info.total}
            if info.first is not None:
                entry["first"] = info.first

            if tag == TypeTag.OBJECT:
                entry["props"] = {
                    name: prop.to_dict() for name, prop in info.props.items()
                }
            elif tag == TypeTag.ARRAY:
                entry["item"] = info.item.to_dict() if info.item else {}
            elif tag == TypeTag.LIST_OF_UNION:
                entry["nodes"] = dict(info.nodes)
            else:
                entry["example"] = info.example
                if tag == TypeTag.STRING and info.empty:
                    entry["empty"] = info.empty

            result[tag.value] = entry
        return result


@dataclass
class TypeMetadata:
    """
    Shape metadata for all records of one node type.

    Single writer: add/delete/ignore calls against one instance must be
    serialized by the caller. The descriptor tree is mutated in place.
    """
    type_name: Optional[str] = None
    ignored: bool = False
    ignored_fields: Set[str] = field(default_factory=set)
    field_map: Dict[str, ValueDescriptor] = field(default_factory=dict)

    # Structural changes only (a type appearing or disappearing)
    dirty: bool = False

    id_field: str = "id"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type_name": self.type_name,
            "ignored": self.ignored,
            "ignored_fields": sorted(self.ignored_fields),
            "dirty": self.dirty,
            "field_map": {
                name: descriptor.to_dict()
                for name, descriptor in self.field_map.items()
            },
        }
