from typing import List, Optional


class ShapeTrackError(Exception):
    """
    Base exception for all shapetrack errors
    """
    pass


class UnmatchedDeleteError(ShapeTrackError):
    """
    Raised when a record is deleted without a matching earlier add.

    The metadata is left exactly as it was before the delete.
    """

    def __init__(self, node_id: Optional[str], paths: List[str]):
        self.node_id = node_id
        self.paths = list(paths)
        super().__init__(
            f"Unmatched delete for node '{node_id}': "
            f"counters would go negative at {self.paths}"
        )


class ConfigurationError(ShapeTrackError):
    """
    Raised when inference settings are invalid
    """
    pass
