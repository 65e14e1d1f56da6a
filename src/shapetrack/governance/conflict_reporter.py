import json
from typing import Any, Dict, List

from shapetrack.observability.logger import logger


CONFLICT_HEADER = (
    "There are conflicting field types in your data.\n\n"
    "Those fields are omitted from the example objects, so they will be\n"
    "missing from any schema derived from them unless their types are\n"
    "defined explicitly."
)


class ConflictReporter:
    """
    Receives type conflicts found while building example objects.
    """

    def add_conflict(self, path: str, alternatives: List[Dict[str, Any]]) -> None:
        raise NotImplementedError


class NullConflictReporter(ConflictReporter):
    def add_conflict(self, path: str, alternatives: List[Dict[str, Any]]) -> None:
        pass


def _format_value(value: Any) -> str:
    return json.dumps(value, default=str)


class CollectingConflictReporter(ConflictReporter):
    """
    Keeps the latest conflict report per path, in the order paths were
    first reported.
    """

    def __init__(self):
        self.conflicts: Dict[str, List[Dict[str, Any]]] = {}

    def add_conflict(self, path: str, alternatives: List[Dict[str, Any]]) -> None:
        self.conflicts[path] = list(alternatives)

    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def clear(self):
        self.conflicts = {}

    def format_conflicts(self) -> str:
        lines = [CONFLICT_HEADER, ""]
        for path, alternatives in self.conflicts.items():
            lines.append(f"{path}:")
            for alternative in alternatives:
                lines.append(f" - type: {alternative['type']}")
                lines.append(f"   value: {_format_value(alternative['value'])}")
        return "\n".join(lines)

    def print_conflicts(self):
        if not self.has_conflicts():
            return
        logger.warning(self.format_conflicts())
