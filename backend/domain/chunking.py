"""Chunk planning: partition a timeline into overlapping windows.

Pure functions, no I/O.
"""

import math

from domain.errors import InvalidConfiguration
from domain.models import ChunkDescriptor, ChunkPlan, DEFAULT_OVERLAP_MS, DEFAULT_WINDOW_MS


def validate_window(window_ms: float, overlap_ms: float) -> None:
    if not (math.isfinite(window_ms) and math.isfinite(overlap_ms)):
        raise InvalidConfiguration(
            f"window and overlap must be finite (window={window_ms}, overlap={overlap_ms})"
        )
    if window_ms <= 0 or overlap_ms <= 0:
        raise InvalidConfiguration(
            f"window and overlap must be positive (window={window_ms}, overlap={overlap_ms})"
        )
    if overlap_ms >= window_ms:
        raise InvalidConfiguration(
            f"overlap must be shorter than window (window={window_ms}, overlap={overlap_ms})"
        )


def plan(
    total_duration_ms: float,
    window_ms: float = DEFAULT_WINDOW_MS,
    overlap_ms: float = DEFAULT_OVERLAP_MS,
) -> ChunkPlan:
    """Compute a ChunkPlan. A zero-length source still gets one chunk."""
    validate_window(window_ms, overlap_ms)
    if not math.isfinite(total_duration_ms) or total_duration_ms < 0:
        raise InvalidConfiguration(f"duration must be finite and >= 0, got {total_duration_ms}")

    chunk_count = int(math.floor(total_duration_ms / (window_ms - overlap_ms))) + 1
    return ChunkPlan(
        total_duration_ms=total_duration_ms,
        window_ms=window_ms,
        overlap_ms=overlap_ms,
        chunk_count=chunk_count,
    )


def descriptors(chunk_plan: ChunkPlan) -> list[ChunkDescriptor]:
    """Ordered descriptors for every chunk in the plan."""
    result: list[ChunkDescriptor] = []
    for index in range(chunk_plan.chunk_count):
        start_ms = index * chunk_plan.step_ms
        end_ms = min(start_ms + chunk_plan.window_ms, chunk_plan.total_duration_ms)
        result.append(ChunkDescriptor(index=index, start_ms=start_ms, end_ms=end_ms))
    return result
