from __future__ import annotations

from dataclasses import dataclass

DUPLICATE_SIZE_POLICIES = ("sum", "reject")


@dataclass
class AllocatorConfig:
    """
    Configuration for the DispatchAllocator.
    """

    # ------------------------------------------------------------------
    # Stock snapshot ingestion
    # "sum": quantities of repeated sizes are added together
    # "reject": a repeated size raises ValidationError
    # ------------------------------------------------------------------
    duplicate_sizes: str = "sum"

    def __post_init__(self):
        if self.duplicate_sizes not in DUPLICATE_SIZE_POLICIES:
            raise ValueError(
                f"Unknown duplicate_sizes policy: {self.duplicate_sizes!r} "
                f"(expected one of {DUPLICATE_SIZE_POLICIES})"
            )
