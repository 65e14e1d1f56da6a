from typing import Tuple

from shapetrack.canonical.descriptor import TypeTag, ValueDescriptor


def _has_values(descriptor: ValueDescriptor, tag: TypeTag) -> bool:
    info = descriptor.get(tag)
    return info is not None and info.total > 0


def is_mixed_number(descriptor: ValueDescriptor) -> bool:
    return _has_values(descriptor, TypeTag.INT) and _has_values(
        descriptor, TypeTag.FLOAT
    )


def is_mix_of_date_and_string(descriptor: ValueDescriptor) -> bool:
    return _has_values(descriptor, TypeTag.DATE) and _has_values(
        descriptor, TypeTag.STRING
    )


def has_only_empty_strings(descriptor: ValueDescriptor) -> bool:
    info = descriptor.get(TypeTag.STRING)
    return info is not None and info.empty == info.total


def resolve_winner_type(descriptor: ValueDescriptor) -> Tuple[TypeTag, bool]:
    """
    Pick the type representing a field.

    Returns (tag, conflict). int + float widens to float and date + string
    is coerced; any other mix is a conflict and resolves to NULL.
    """
    candidates = descriptor.possible_types()

    if not candidates:
        return TypeTag.NULL, False

    if len(candidates) == 1:
        return candidates[0], False

    if len(candidates) == 2 and is_mixed_number(descriptor):
        return TypeTag.FLOAT, False

    if len(candidates) == 2 and is_mix_of_date_and_string(descriptor):
        if has_only_empty_strings(descriptor):
            return TypeTag.DATE, False
        return TypeTag.STRING, False

    return TypeTag.NULL, True
