"""
Incremental add/delete of one value into a ValueDescriptor tree.

The descriptor is mutated in place and returned together with a flag telling
whether the change was structural, i.e. some type count crossed between 0
and 1 (a type appeared at a position, or disappeared from it).

Conflicts inside arrays are hard to attribute: {a: [5, "foo"]} and the pair
{a: [5]}, {a: ["foo"]} produce identical counts. Every TypeInfo therefore also
remembers the id of the record that first introduced it, which lets conflict
reports group array item values by originating record. The attribution is
approximate once records are deleted.

When a journal list is passed, every attribute or mapping entry is recorded
before it is overwritten, so `undo_updates` can put the tree back exactly.
"""
from enum import Enum
from typing import Any, List, Optional, Tuple

from shapetrack.canonical.descriptor import TypeInfo, TypeTag, ValueDescriptor
from shapetrack.inference.type_classifier import get_type


class Operation(str, Enum):
    ADD = "add"
    DEL = "del"


# (target, attribute or key, previous value, target is a mapping)
JournalEntry = Tuple[Any, Any, Any, bool]

_MISSING = object()


def _record_underflow(underflows: Optional[List[str]], count: int, path: str):
    if underflows is not None and count < 0:
        underflows.append(path)


def journal_attr(journal: Optional[List[JournalEntry]], target: Any, name: str):
    if journal is not None:
        journal.append((target, name, getattr(target, name), False))


def journal_key(journal: Optional[List[JournalEntry]], mapping: dict, key: Any):
    if journal is not None:
        journal.append((mapping, key, mapping.get(key, _MISSING), True))


def undo_updates(journal: List[JournalEntry]):
    """
    Revert journaled changes, newest first. Entries created by the
    journaled updates are removed again.
    """
    for target, name, previous, is_mapping in reversed(journal):
        if not is_mapping:
            setattr(target, name, previous)
        elif previous is _MISSING:
            target.pop(name, None)
        else:
            target[name] = previous
    journal.clear()


def update_value_descriptor(
    descriptor: Optional[ValueDescriptor],
    key: str,
    value: Any,
    operation: Operation = Operation.ADD,
    node_id: Optional[str] = None,
    underflows: Optional[List[str]] = None,
    path: str = "",
    journal: Optional[List[JournalEntry]] = None,
) -> Tuple[ValueDescriptor, bool]:
    """
    Apply one value to a descriptor.

    Args:
        descriptor: descriptor for this position, None if nothing seen yet
        key: field name of the value (decides listOfUnion classification)
        value: raw value being added or removed
        operation: Operation.ADD or Operation.DEL
        node_id: id of the record the value belongs to
        underflows: when given, collects paths of counters that went negative
        path: position of the value, only used for underflow reports
        journal: when given, records previous state for undo_updates

    Returns:
        (descriptor, structural_change)
    """
    if descriptor is None:
        descriptor = ValueDescriptor()

    type_tag = get_type(value, key)
    if type_tag == TypeTag.NULL:
        return descriptor, False

    operation = Operation(operation)
    delta = -1 if operation == Operation.DEL else 1

    type_info = descriptor.get(type_tag)
    if type_info is None:
        type_info = TypeInfo()
        journal_key(journal, descriptor.types, type_tag)
        descriptor.types[type_tag] = type_info

    journal_attr(journal, type_info, "total")
    journal_attr(journal, type_info, "first")
    type_info.total += delta
    _record_underflow(underflows, type_info.total, f"{path}<{type_tag.value}>")

    # Landing on 1 while adding, or on 0 while deleting
    boundary = 1 if operation == Operation.ADD else 0
    dirty = type_info.total == boundary

    if operation == Operation.ADD:
        if type_info.first is None:
            type_info.first = node_id
    elif type_info.first == node_id or type_info.total == 0:
        type_info.first = None

    if type_tag == TypeTag.OBJECT:
        for prop, prop_value in value.items():
            prop_descriptor, prop_dirty = update_value_descriptor(
                type_info.props.get(prop),
                prop,
                prop_value,
                operation,
                node_id,
                underflows,
                f"{path}.{prop}",
                journal,
            )
            journal_key(journal, type_info.props, prop)
            type_info.props[prop] = prop_descriptor
            dirty = dirty or prop_dirty

    elif type_tag == TypeTag.ARRAY:
        for item in value:
            # Elements share one descriptor and keep the field's key
            item_descriptor, item_dirty = update_value_descriptor(
                type_info.item,
                key,
                item,
                operation,
                node_id,
                underflows,
                f"{path}[]",
                journal,
            )
            journal_attr(journal, type_info, "item")
            type_info.item = item_descriptor
            dirty = dirty or item_dirty

    elif type_tag == TypeTag.LIST_OF_UNION:
        for ref in value:
            # Ids are tracked as strings, whatever shape they arrive in
            ref_id = str(ref)
            count = type_info.nodes.get(ref_id, 0) + delta
            journal_key(journal, type_info.nodes, ref_id)
            type_info.nodes[ref_id] = count
            _record_underflow(underflows, count, f"{path}->{ref_id}")

            # Over-reports: another id may resolve to an already known type
            dirty = dirty or count == boundary

    else:
        if type_tag == TypeTag.STRING and value == "":
            journal_attr(journal, type_info, "empty")
            type_info.empty += delta
            _record_underflow(underflows, type_info.empty, f"{path}<empty>")

        if operation == Operation.ADD and type_info.example is None:
            journal_attr(journal, type_info, "example")
            type_info.example = value

    return descriptor, dirty
