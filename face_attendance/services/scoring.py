from dataclasses import dataclass
from typing import Generic, Iterable, Optional, Sequence, TypeVar

import numpy as np

from face_attendance.config import settings
from face_attendance.exceptions import InvalidDescriptor, NoMatch, NoRegisteredUsers
from face_attendance.models.user import DESCRIPTOR_LENGTH

T = TypeVar("T")


def as_descriptor(values: Sequence[float]) -> np.ndarray:
    """Coerce to a 1-D float64 vector, rejecting anything but 128 values."""
    vector = np.asarray(values, dtype=np.float64)
    if vector.ndim != 1 or vector.shape[0] != DESCRIPTOR_LENGTH:
        raise InvalidDescriptor(
            f"Face descriptor must have {DESCRIPTOR_LENGTH} values, got shape {vector.shape}."
        )
    return vector


def distance(a: Sequence[float], b: Sequence[float]) -> float:
    return float(np.linalg.norm(as_descriptor(a) - as_descriptor(b)))


def score(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Confidence that two descriptors belong to the same face.

    Defined as 1 - euclidean distance. It is not clamped: descriptors further
    apart than 1.0 give a negative confidence.
    """
    return 1.0 - distance(a, b)


@dataclass(frozen=True)
class Candidate(Generic[T]):
    key: str
    descriptor: Sequence[float]
    item: T


@dataclass(frozen=True)
class Match(Generic[T]):
    candidate: Candidate[T]
    confidence: float

    @property
    def item(self) -> T:
        return self.candidate.item

    @property
    def confidence_percent(self) -> float:
        return round(self.confidence * 100, 2)


def best_match(
    live: Sequence[float], candidates: Iterable[Candidate[T]]
) -> Optional[Match[T]]:
    """
    Highest-confidence candidate, or None when there are no candidates.

    Equal confidences resolve to the smallest candidate key so the result
    does not depend on the order rows came back from the database.
    """
    live_vector = as_descriptor(live)
    best: Optional[Match[T]] = None
    for candidate in candidates:
        confidence = 1.0 - float(
            np.linalg.norm(as_descriptor(candidate.descriptor) - live_vector)
        )
        if (
            best is None
            or confidence > best.confidence
            or (confidence == best.confidence and candidate.key < best.candidate.key)
        ):
            best = Match(candidate=candidate, confidence=confidence)
    return best


def decide(
    live: Sequence[float],
    candidates: Sequence[Candidate[T]],
    threshold: Optional[float] = None,
) -> Match[T]:
    """
    Apply the acceptance policy: argmax confidence, strictly above threshold.

    Raises NoRegisteredUsers for an empty candidate set (nothing is scored)
    and NoMatch when the winner does not clear the threshold.
    """
    if threshold is None:
        threshold = settings.MATCH_THRESHOLD
    if not candidates:
        raise NoRegisteredUsers()

    match = best_match(live, candidates)
    if match is None or not match.confidence > threshold:
        raise NoMatch()
    return match
