"""
Burn Queue

This module implements the FIFO queue between the guidance logic and the
thrusters. It drops insignificant burns, suppresses near-duplicate requests
for the same correction, splits large burns into chunks, and releases at
most one burn per minimum inter-burn interval.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, List, Optional

import numpy as np

from .actuator_models import PropellantInventory, ThrusterKind
from ..dynamics.perturbations import CorrectionKind, TargetElement
from ..utils.math_utils import cosine_similarity, unit_vector

logger = logging.getLogger(__name__)


@dataclass
class QueueSettings:
    """Burn queue thresholds."""
    min_significant_dv: float = 0.01          # Smallest burn worth queueing [m/s]
    max_chunk_dv: float = 2.0                 # Largest single queued burn [m/s]
    duplicate_dv_tolerance: float = 0.1       # |ΔV| difference treated as duplicate [m/s]
    direction_cosine_tolerance: float = 0.99  # Direction similarity treated as duplicate
    max_queue_length: int = 20


def create_default_queue_settings() -> QueueSettings:
    """Create default burn queue settings."""
    return QueueSettings()


@dataclass(frozen=True)
class BurnIntent:
    """Structured de-duplication key of a burn."""
    kind: CorrectionKind
    target: TargetElement


class RejectionReason(Enum):
    """Why a burn was not queued."""
    BELOW_MINIMUM = "below_minimum"
    DUPLICATE = "duplicate"
    QUEUE_FULL = "queue_full"
    INVALID = "invalid"


@dataclass
class BurnRequest:
    """
    A queued impulsive burn.

    Attributes:
        delta_v: Signed magnitude [m/s] (+ prograde/outward, - retrograde/inward)
        direction: Unit thrust direction (2x1)
        reason: Diagnostic text
        thruster_kind: Thruster family to fire
        intent: De-duplication key
        enqueued_at: Mission time of queueing [s]
        inventory_snapshot: Tank levels at queueing time [kg]
        mass_snapshot: Spacecraft mass at queueing time [kg]
        chunk_index: Position of this chunk in its burn (0-based)
        chunk_count: Number of chunks the burn was split into
        total_delta_v: Signed magnitude of the whole burn [m/s]
    """
    delta_v: float
    direction: np.ndarray
    reason: str
    thruster_kind: ThrusterKind
    intent: BurnIntent
    enqueued_at: float
    inventory_snapshot: Optional[Dict[str, float]] = None
    mass_snapshot: Optional[float] = None
    chunk_index: int = 0
    chunk_count: int = 1
    total_delta_v: float = 0.0


class BurnQueue:
    """
    FIFO queue of correction burns.

    Only the guidance controller mutates the queue; the host reads it
    through pop_due().
    """

    def __init__(self, settings: Optional[QueueSettings] = None):
        self.settings = settings or QueueSettings()
        self._queue: Deque[BurnRequest] = deque()
        self.last_burn_time: Optional[float] = None
        self.last_rejection: Optional[RejectionReason] = None

    def __len__(self) -> int:
        return len(self._queue)

    def __iter__(self):
        return iter(list(self._queue))

    def is_duplicate(self, delta_v: float, direction: np.ndarray, intent: BurnIntent) -> bool:
        """
        Check for a pending burn with the same intent and a similar vector.

        Chunked burns are compared by the magnitude of the whole burn.
        """
        for request in self._queue:
            if request.intent != intent:
                continue
            if abs(request.total_delta_v - delta_v) > self.settings.duplicate_dv_tolerance:
                continue
            if cosine_similarity(request.direction, direction) >= self.settings.direction_cosine_tolerance:
                return True
        return False

    def queue_burn(self, delta_v: float, direction: np.ndarray, reason: str,
                   thruster_kind: ThrusterKind, intent: BurnIntent, mission_time: float,
                   inventory: Optional[PropellantInventory] = None,
                   mass: Optional[float] = None) -> List[BurnRequest]:
        """
        Queue a burn, splitting it into chunks when it is large.

        Args:
            delta_v: Signed burn magnitude [m/s]
            direction: Thrust direction (normalized here)
            reason: Diagnostic text
            thruster_kind: Thruster family to fire
            intent: De-duplication key
            mission_time: Current mission time [s]
            inventory: Tank levels to snapshot
            mass: Spacecraft mass to snapshot [kg]

        Returns:
            The queued requests (empty when rejected; see last_rejection)
        """
        self.last_rejection = None

        if not np.isfinite(delta_v):
            return self._reject(RejectionReason.INVALID, reason, delta_v)
        if abs(delta_v) < self.settings.min_significant_dv:
            return self._reject(RejectionReason.BELOW_MINIMUM, reason, delta_v)

        try:
            direction = unit_vector(np.asarray(direction, dtype=float))
        except ValueError:
            return self._reject(RejectionReason.INVALID, reason, delta_v)

        if self.is_duplicate(delta_v, direction, intent):
            return self._reject(RejectionReason.DUPLICATE, reason, delta_v)

        chunk_count = int(np.ceil(abs(delta_v) / self.settings.max_chunk_dv))
        if len(self._queue) + chunk_count > self.settings.max_queue_length:
            return self._reject(RejectionReason.QUEUE_FULL, reason, delta_v)

        chunk_dv = delta_v / chunk_count
        snapshot = inventory.snapshot() if inventory is not None else None
        queued = []
        for index in range(chunk_count):
            # Last chunk absorbs rounding so the chunks sum to the request
            dv = chunk_dv if index < chunk_count - 1 else delta_v - chunk_dv * (chunk_count - 1)
            request = BurnRequest(
                delta_v=float(dv),
                direction=direction.copy(),
                reason=reason if chunk_count == 1 else f"{reason} [{index + 1}/{chunk_count}]",
                thruster_kind=thruster_kind,
                intent=intent,
                enqueued_at=mission_time,
                inventory_snapshot=dict(snapshot) if snapshot is not None else None,
                mass_snapshot=mass,
                chunk_index=index,
                chunk_count=chunk_count,
                total_delta_v=float(delta_v)
            )
            self._queue.append(request)
            queued.append(request)

        logger.debug("Queued %+.3f m/s in %d chunk(s) for %s/%s: %s",
                     delta_v, chunk_count, intent.kind.value, intent.target.value, reason)
        return queued

    def _reject(self, rejection: RejectionReason, reason: str, delta_v: float) -> List[BurnRequest]:
        self.last_rejection = rejection
        logger.debug("Rejected %+.4f m/s (%s): %s", delta_v, rejection.value, reason)
        return []

    def is_due(self, mission_time: float, min_interval: float) -> bool:
        """Whether a burn may be released at this mission time."""
        if not self._queue:
            return False
        return self.last_burn_time is None or mission_time - self.last_burn_time >= min_interval

    def pop_due(self, mission_time: float, min_interval: float) -> Optional[BurnRequest]:
        """
        Release the oldest burn if the minimum interval has elapsed.

        Args:
            mission_time: Current mission time [s]
            min_interval: Minimum time between released burns [s]

        Returns:
            The released request or None
        """
        if not self.is_due(mission_time, min_interval):
            return None
        request = self._queue.popleft()
        self.last_burn_time = mission_time
        logger.debug("Released %+.3f m/s (%s) at t=%.1f s",
                     request.delta_v, request.reason, mission_time)
        return request

    def peek(self) -> Optional[BurnRequest]:
        return self._queue[0] if self._queue else None

    def pending_delta_v(self) -> float:
        """Sum of queued burn magnitudes [m/s]."""
        return float(sum(abs(request.delta_v) for request in self._queue))

    def clear(self) -> None:
        """Drop all pending burns."""
        self._queue.clear()
        self.last_rejection = None
