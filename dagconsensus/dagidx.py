"""Read-only views of the vector index for consumers of the DAG index."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Optional

from .forkless import VectorIndex
from .vectors import BranchSeq, HighestBeforeSeq


@dataclass(frozen=True)
class SeqView:
    """The observed state of one branch."""

    branch: BranchSeq

    def seq(self) -> int:
        """Return the highest observed sequence number in the branch."""
        return self.branch.seq

    def min_seq(self) -> int:
        """Return the lowest observed sequence number in the branch."""
        return self.branch.min_seq

    def is_fork_detected(self) -> bool:
        """Return True if a fork of the branch's creator is observed."""
        return self.branch.is_fork_detected()


class HighestBeforeView:
    """A highest-before vector seen as a sequence of branch views."""

    def __init__(self, vector: HighestBeforeSeq) -> None:
        self.vector = vector

    def size(self) -> int:
        """Return the number of entries."""
        return self.vector.size()

    def __len__(self) -> int:
        return self.size()

    def get(self, index: int) -> SeqView:
        """Return the view of the entry at index."""
        return SeqView(self.vector.get(index))


class DagIndexer:
    """Forkless-cause and merged vector queries over a vector index."""

    def __init__(self, engine: VectorIndex) -> None:
        self.engine = engine

    def forkless_cause(self, a_id: Hashable, b_id: Hashable) -> bool:
        """Return True if event A forkless-causes event B."""
        return self.engine.forkless_cause(a_id, b_id)

    def get_merged_highest_before(self, event_id: Hashable) -> Optional[HighestBeforeView]:
        """Return the per-validator highest-before view of an event, or None."""
        vector = self.engine.get_merged_highest_before(event_id)
        if vector is None:
            return None
        return HighestBeforeView(vector)