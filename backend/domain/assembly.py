"""Result assembly: restore temporal order after out-of-order completion."""

from typing import Mapping

from domain.models import TranscriptionOutcome


def assemble(outcomes: Mapping[int, TranscriptionOutcome], chunk_count: int) -> str:
    """Concatenate successful texts in chunk-index order.

    Segments overlap rather than abut on word boundaries, so no separator is
    inserted. Failed or missing slots contribute nothing.
    """
    parts: list[str] = []
    for index in range(chunk_count):
        outcome = outcomes.get(index)
        if outcome is None or not outcome.succeeded:
            continue
        parts.append(outcome.text)
    return "".join(parts)


def failed_indices(outcomes: Mapping[int, TranscriptionOutcome], chunk_count: int) -> list[int]:
    return [
        index for index in range(chunk_count)
        if index not in outcomes or not outcomes[index].succeeded
    ]
