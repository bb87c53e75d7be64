"""Pipeline exception types.

Only input-shape violations and block sequencing errors are raised. Numeric
and decoding problems are recovered locally and never reach these types.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for errors that fail a whole block."""


class InputContractError(PipelineError, ValueError):
    """Upstream data does not have the shape the pipeline requires."""


class BlockSequenceError(PipelineError):
    """A block arrived out of order or after a gap."""

    def __init__(self, *, expected: int | None, received: int, contiguous: bool) -> None:
        self.expected = expected
        self.received = received
        self.contiguous = contiguous
        if contiguous:
            msg = f"expected block {expected}, received block {received}"
        else:
            msg = f"block {received} does not advance past block {expected}"
        super().__init__(msg)
