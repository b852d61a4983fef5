"""
Entity Registry
===============

Owner of the live entity set.

Each merged snapshot is treated as the COMPLETE list of people present:
    - ids already live      -> target/heading/age updated, state WALKING
    - ids not yet live      -> new entity parked at the reported position
    - live ids not reported -> retired, dwell time folded into statistics

Identity rules:
    - An id is unique across the live set at all times
    - A retired id that reappears becomes a NEW entity with a new
      entry timestamp (no resurrection)
    - Within one snapshot, the last record for an id wins
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from occupancy_twin.models.entity import (
    DecodedPerson,
    LifecycleState,
    SnapshotUpdate,
    TrackedEntity,
)
from occupancy_twin.tracking.statistics import StatisticsAggregator


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetiredVisit:
    """One completed visit."""

    id: str
    entry_timestamp: float
    exit_timestamp: float

    @property
    def dwell_seconds(self) -> float:
        return self.exit_timestamp - self.entry_timestamp


@dataclass(frozen=True, slots=True)
class RegistryDelta:
    """
    Result of one merge.

    Attributes:
        created: Ids of entities created by this merge
        updated: Ids of entities that already existed
        retired: Visits completed by this merge
        live_count: Size of the live set after the merge
    """

    created: Tuple[str, ...]
    updated: Tuple[str, ...]
    retired: Tuple[RetiredVisit, ...]
    live_count: int

    @property
    def dwell_added(self) -> float:
        return sum(max(0.0, visit.dwell_seconds) for visit in self.retired)

    @property
    def visits_completed(self) -> int:
        return len(self.retired)


class EntityRegistry:
    """
    Live set of tracked entities keyed by id.

    Attributes:
        statistics: Aggregator that receives retirements and recounts

    Example:
        registry = EntityRegistry()
        delta = registry.merge(update, now=time.time())
        for entity in registry.entities():
            print(entity.id, entity.target_position)
    """

    def __init__(
        self,
        statistics: Optional[StatisticsAggregator] = None,
        log_every_n_merges: int = 100,
    ) -> None:
        """
        Initialize an empty registry.

        Args:
            statistics: Aggregator to fold visits into (a private one
                is created if omitted)
            log_every_n_merges: Log a summary every N merges
        """
        self.statistics = statistics if statistics is not None else StatisticsAggregator()
        self.log_every_n_merges = log_every_n_merges

        self._entities: Dict[str, TrackedEntity] = {}
        self._merge_count: int = 0

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._entities

    def get(self, entity_id: str) -> Optional[TrackedEntity]:
        return self._entities.get(entity_id)

    def entities(self) -> List[TrackedEntity]:
        """Live entities in first-seen order."""
        return list(self._entities.values())

    def merge(self, update: SnapshotUpdate, now: float) -> RegistryDelta:
        """
        Reconcile the live set with one snapshot.

        Args:
            update: Normalized snapshot
            now: Wall-clock seconds used for entry and exit timestamps

        Returns:
            RegistryDelta describing what changed
        """
        self._merge_count += 1

        created: List[str] = []
        updated: List[str] = []

        # Last record per id wins; ids keep first-seen order.
        latest: Dict[str, DecodedPerson] = {}
        for person in update.people:
            latest[person.id] = person

        previous = self._entities
        current: Dict[str, TrackedEntity] = {}

        for entity_id, person in latest.items():
            entity = previous.get(entity_id)

            if entity is None:
                entity = TrackedEntity.from_person(person, now)
                created.append(entity_id)
                logger.debug(f"Entity {entity_id} entered at {person.position}")
            else:
                entity.target_position = person.position
                entity.heading = person.heading
                entity.lifecycle_state = LifecycleState.WALKING
                entity.age = person.age
                updated.append(entity_id)

            current[entity_id] = entity

        retired: List[RetiredVisit] = []
        for entity_id, entity in previous.items():
            if entity_id in latest:
                continue
            visit = RetiredVisit(
                id=entity_id,
                entry_timestamp=entity.entry_timestamp,
                exit_timestamp=now,
            )
            retired.append(visit)
            self.statistics.record_retirement(visit.dwell_seconds)
            logger.debug(
                f"Entity {entity_id} retired after {visit.dwell_seconds:.1f}s"
            )

        self._entities = current
        self.statistics.recount_active(current.values())

        if self._merge_count % self.log_every_n_merges == 0:
            logger.info(
                f"Registry [merge {self._merge_count}]: live={len(current)}, "
                f"completed_visits={self.statistics.snapshot().completed_visits}"
            )

        return RegistryDelta(
            created=tuple(created),
            updated=tuple(updated),
            retired=tuple(retired),
            live_count=len(current),
        )

    def clear(self) -> int:
        """
        Drop every live entity WITHOUT recording visits.

        Returns:
            Number of entities discarded
        """
        discarded = len(self._entities)
        self._entities = {}
        self.statistics.recount_active(())
        logger.info(f"EntityRegistry cleared ({discarded} entities discarded)")
        return discarded

    @property
    def merge_count(self) -> int:
        return self._merge_count
