from pathlib import Path
from typing import Optional, Union


class PipelineError(Exception):
    """Base class for every failure raised while building the primary table."""


class ParseError(PipelineError):
    """A date, number or currency field (or a required column) could not be read."""

    def __init__(self, path: Union[str, Path], row: Optional[int], detail: str):
        self.path = str(path)
        self.row = row
        self.detail = detail
        where = f"{self.path} (row {row})" if row is not None else self.path
        super().__init__(f"Failed to parse {where}: {detail}")


class ShapeMismatchError(PipelineError):
    """Extracted results cells do not fill the declared candidates x columns grid."""

    def __init__(self, state: str, expected: int, found: int):
        self.state = state
        self.expected = expected
        self.found = found
        super().__init__(
            f"Results document for {state}: expected {expected} text nodes, found {found}"
        )


class MissingInputError(PipelineError):
    """A required input file is absent."""

    def __init__(self, path: Union[str, Path], operation: str):
        self.path = str(path)
        self.operation = operation
        super().__init__(f"Missing input for {operation}: {self.path}")


class DocumentFetchError(PipelineError):
    """A results document could not be retrieved."""

    def __init__(self, source: str, detail: str):
        self.source = source
        super().__init__(f"Could not fetch results document {source}: {detail}")


class UnmappedNameWarning(UserWarning):
    """A candidate spelling that is not in the name registry."""

# --- LESSONS LEARNED ---
# 1. Row numbers in ParseError are CSV line numbers (header is line 1), so they
#    can be pasted straight into an editor.
# 2. Join gaps between sources are expected and show up as nulls, not errors.
