"""Planning service errors."""

from __future__ import annotations


class InventoryServiceUnavailable(RuntimeError):
    """The inventory provider failed, so the whole operation was aborted.

    Attributes:
        operation: Facade operation that was running
        original_message: Message of the provider exception

    """

    def __init__(self, operation: str, original_message: str):
        self.operation = operation
        self.original_message = original_message
        super().__init__(f"Failed to {operation.replace('_', ' ')}: {original_message}")


__all__ = ["InventoryServiceUnavailable"]
