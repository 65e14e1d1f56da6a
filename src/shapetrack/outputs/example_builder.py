from typing import Any, Dict, List, Optional

from shapetrack.canonical.descriptor import TypeInfo, TypeTag, ValueDescriptor
from shapetrack.governance.conflict_reporter import ConflictReporter
from shapetrack.pipeline.type_resolver import (
    has_only_empty_strings,
    is_mix_of_date_and_string,
    is_mixed_number,
    resolve_winner_type,
)


# Examples used when dates and strings are mixed at one position
MIXED_DATE_EXAMPLE = "1978-09-26"
MIXED_STRING_EXAMPLE = "String"


def _type_label(tag: TypeTag) -> str:
    if tag == TypeTag.LIST_OF_UNION:
        return "[string]"
    if tag in (TypeTag.INT, TypeTag.FLOAT):
        return "number"
    return tag.value


def _linked_ids(type_info: TypeInfo) -> List[str]:
    return [ref_id for ref_id, count in type_info.nodes.items() if count > 0]


def _first_numeric_example(descriptor: ValueDescriptor) -> Any:
    for tag in descriptor.possible_types():
        if tag in (TypeTag.INT, TypeTag.FLOAT):
            return descriptor.get(tag).example
    return None


# --------------------------------------------------
# CONFLICT EXAMPLES
# --------------------------------------------------

def prepare_conflict_examples(
    descriptor: ValueDescriptor,
    is_array_item: bool = False,
) -> List[Dict[str, Any]]:
    """
    Describe every conflicting type at one position as {type, value}.

    Array items are grouped by the record each type was first seen in, so
    values from different records are not reported as if they shared one
    array.
    """

    def reported_value(tag: TypeTag) -> Any:
        type_info = descriptor.get(tag)

        if tag == TypeTag.LIST_OF_UNION:
            return _linked_ids(type_info)

        if tag == TypeTag.OBJECT:
            return get_example_object(type_info.props, tag.value)

        if tag == TypeTag.ARRAY:
            item_value = (
                build_example_value(type_info.item, is_array_item=True)
                if type_info.item is not None
                else None
            )
            return [] if item_value is None else [item_value]

        return type_info.example

    conflicting_types = descriptor.possible_types()

    if is_array_item:
        groups: Dict[str, List[TypeTag]] = {}
        for tag in conflicting_types:
            origin = descriptor.first_seen_in(tag) or ""
            groups.setdefault(origin, []).append(tag)

        return [
            {
                "type": f"[{','.join(_type_label(tag) for tag in tags)}]",
                "value": [reported_value(tag) for tag in tags],
            }
            for tags in groups.values()
        ]

    return [
        {"type": _type_label(tag), "value": reported_value(tag)}
        for tag in conflicting_types
    ]


# --------------------------------------------------
# EXAMPLE VALUES
# --------------------------------------------------

def build_example_value(
    descriptor: ValueDescriptor,
    reporter: Optional[ConflictReporter] = None,
    is_array_item: bool = False,
    path: str = "",
) -> Any:
    """
    Build one representative value for a position, or None when nothing
    usable was observed (no values, or conflicting types).
    """
    tag, conflict = resolve_winner_type(descriptor)

    if conflict and reporter is not None:
        reporter.add_conflict(
            path, prepare_conflict_examples(descriptor, is_array_item)
        )

    if tag == TypeTag.NULL:
        return None

    type_info = descriptor.get(tag)

    if tag in (TypeTag.DATE, TypeTag.STRING):
        if is_mix_of_date_and_string(descriptor):
            if has_only_empty_strings(descriptor):
                return MIXED_DATE_EXAMPLE
            return MIXED_STRING_EXAMPLE
        return type_info.example

    if tag == TypeTag.FLOAT and is_mixed_number(descriptor):
        return _first_numeric_example(descriptor)

    if tag in (TypeTag.INT, TypeTag.FLOAT, TypeTag.BOOLEAN):
        return type_info.example

    if tag == TypeTag.ARRAY:
        if type_info.item is None:
            return None
        item_value = build_example_value(
            type_info.item,
            reporter=reporter,
            is_array_item=True,
            path=path,
        )
        return None if item_value is None else [item_value]

    if tag == TypeTag.LIST_OF_UNION:
        return _linked_ids(type_info)

    # Only OBJECT is left
    example = {}
    for prop, prop_descriptor in type_info.props.items():
        value = build_example_value(
            prop_descriptor,
            reporter=reporter,
            path=f"{path}.{prop}",
        )
        if value is not None:
            example[prop] = value
    return example


def get_example_object(
    field_map: Dict[str, ValueDescriptor],
    type_name: Optional[str],
    reporter: Optional[ConflictReporter] = None,
) -> Dict[str, Any]:
    """
    Build an example object for a whole node type.
    Fields without a usable example are left out.
    """
    example = {}
    for field_name, descriptor in field_map.items():
        value = build_example_value(
            descriptor,
            reporter=reporter,
            path=f"{type_name or ''}.{field_name}",
        )
        if field_name and value is not None:
            example[field_name] = value
    return example
