"""
Custom exception types for the Dexter bridge.
Keep this focused and non-redundant; prefer built-ins where appropriate.
"""


class MalformedFrameError(ValueError):
    """Inbound status frame does not have the fixed 240-byte layout."""

    def __init__(self, message: str):
        self.original_message = message
        super().__init__(f"Malformed Frame: {message}")

    def __str__(self):
        return f"Malformed Frame: {self.original_message}"


class UnknownBlockError(KeyError):
    """Host runtime invoked a block opcode that has no registered operation."""

    def __init__(self, message: str):
        self.original_message = message
        super().__init__(f"Unknown Block: {message}")

    def __str__(self):
        return f"Unknown Block: {self.original_message}"
