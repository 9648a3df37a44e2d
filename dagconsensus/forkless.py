"""Forkless-cause relation between events, computed from stored vector clocks."""

from __future__ import annotations

from typing import Hashable, Iterable

from .engine import Engine, InconsistentStoreError
from .validators import WeightCounter
from .vectors import HighestBeforeSeq

_MISSING = object()


class VectorIndex(Engine):
    """A vector-clock engine that also answers forkless-cause queries."""

    def forkless_cause(self, a_id: Hashable, b_id: Hashable) -> bool:
        """Return True if event A forkless-causes event B.

        A.HighestBefore holds, per branch, the highest event observed by A;
        B.LowestAfter holds, per branch, the lowest event observing B. A
        forkless-causes B when validators holding a quorum of weight have a
        branch where the first is at least the second, and A sees no fork
        by B's creator. Two forks of one event cannot both be forkless-caused
        by the same event unless more than a third of the weight is Byzantine.
        """
        key = (a_id, b_id)
        cached = self.forkless_cause_cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached
        self.init_branches_info()
        result = self._forkless_cause(a_id, b_id)
        self.forkless_cause_cache.add(key, result, 1)
        return result

    def _observes_fork_of(self, vectors: Iterable[HighestBeforeSeq], b_id: Hashable) -> bool:
        if not self.at_least_one_fork():
            return False
        b_branch = self.get_event_branch_id(b_id)
        return any(vector.get(b_branch).is_fork_detected() for vector in vectors)

    def _forkless_cause(self, a_id: Hashable, b_id: Hashable) -> bool:
        a_vector = self.get_highest_before(a_id)
        if a_vector is None:
            self.crit(InconsistentStoreError(f"Event A={a_id} not found"))
            return False

        # B is observed as a cheater by A.
        if self._observes_fork_of([a_vector], b_id):
            return False

        b_vector = self.get_lowest_after(b_id)
        if b_vector is None:
            self.crit(InconsistentStoreError(f"Event B={b_id} not found"))
            return False

        yes = self.validators.new_counter()
        for branch_id, creator_idx in enumerate(self.branches_info().branch_id_creator_idxs):
            b_lowest_after = b_vector.get(branch_id)
            a_highest_before = a_vector.get(branch_id)
            if (
                b_lowest_after != 0
                and b_lowest_after <= a_highest_before.seq
                and not a_highest_before.is_fork_detected()
            ):
                # One creator may be met on several branches; it counts once.
                yes.count_by_idx(creator_idx)
        return yes.has_quorum()

    def forkless_cause_progress(
        self,
        a_id: Hashable,
        b_id: Hashable,
        candidate_parents: Iterable[Hashable],
        chosen_parents: Iterable[Hashable],
    ) -> tuple[WeightCounter, list[WeightCounter]]:
        """Measure progress of B towards being forkless-caused by a new event.

        The new event has A as self-parent and the chosen parents as other
        parents. Returns the counter for A plus the chosen parents, and one
        counter per candidate parent for A plus the chosen parents plus that
        candidate.
        """
        candidate_parents = list(candidate_parents)
        chosen_parents = list(chosen_parents)
        candidate_progress = [self.validators.new_counter() for _ in candidate_parents]
        chosen_progress = self.validators.new_counter()
        result = (chosen_progress, candidate_progress)

        self.init_branches_info()
        a_vector = self.get_highest_before(a_id)
        if a_vector is None:
            self.crit(InconsistentStoreError(f"Event A={a_id} not found"))
            return result

        candidate_vectors = []
        for parent in candidate_parents:
            vector = self.get_highest_before(parent)
            if vector is None:
                self.crit(InconsistentStoreError(f"Candidate parent={parent} not found"))
                return result
            candidate_vectors.append(vector)

        chosen_vectors = []
        for parent in chosen_parents:
            vector = self.get_highest_before(parent)
            if vector is None:
                self.crit(InconsistentStoreError(f"Chosen parent={parent} not found"))
                return result
            chosen_vectors.append(vector)

        if self._observes_fork_of([a_vector, *chosen_vectors, *candidate_vectors], b_id):
            return result

        b_vector = self.get_lowest_after(b_id)
        if b_vector is None:
            self.crit(InconsistentStoreError(f"Event B={b_id} not found"))
            return result

        for branch_id, creator_idx in enumerate(self.branches_info().branch_id_creator_idxs):
            b_lowest_after = b_vector.get(branch_id)
            if b_lowest_after == 0:
                continue
            highest = a_vector.get(branch_id)
            seq = highest.seq
            fork_detected = highest.is_fork_detected()
            for vector in chosen_vectors:
                entry = vector.get(branch_id)
                seq = max(seq, entry.seq)
                fork_detected = fork_detected or entry.is_fork_detected()

            if b_lowest_after <= seq and not fork_detected:
                chosen_progress.count_by_idx(creator_idx)

            for counter, vector in zip(candidate_progress, candidate_vectors):
                entry = vector.get(branch_id)
                if b_lowest_after <= max(seq, entry.seq) and not (
                    fork_detected or entry.is_fork_detected()
                ):
                    counter.count_by_idx(creator_idx)

        # The new event itself observes B whenever anything in its subgraph does,
        # so A's creator contributes to every candidate with any progress.
        if any(counter.total() > 0 for counter in candidate_progress):
            a_event = self.get_event(a_id)
            if a_event is None:
                self.crit(InconsistentStoreError(f"Event A={a_id} not found"))
                return result
            for counter in candidate_progress:
                if counter.total() > 0:
                    counter.count(a_event.creator)
        return result