from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Dict


@dataclass
class PerkSnapshot:
    redemptions: Dict[str, int]
    by_perk_type: Dict[str, Dict[str, int]]
    evaluations: Dict[str, int]

    def as_dict(self) -> Dict[str, object]:
        return {
            "redemptions": dict(self.redemptions),
            "by_perk_type": {key: dict(value) for key, value in self.by_perk_type.items()},
            "evaluations": dict(self.evaluations),
        }


class PerkObservabilityStore:
    """In-process counters for perk evaluation and redemption outcomes."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._redemptions: Dict[str, int] = defaultdict(int)
        self._by_perk_type: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._evaluations: Dict[str, int] = defaultdict(int)

    def record_redemption(self, perk_type: str, outcome: str) -> None:
        with self._lock:
            self._redemptions["total"] += 1
            self._redemptions[outcome] += 1
            self._by_perk_type[perk_type or "unknown"][outcome] += 1

    def record_evaluation(self, *, available: int, unavailable: int) -> None:
        with self._lock:
            self._evaluations["requests"] += 1
            self._evaluations["perks_available"] += available
            self._evaluations["perks_unavailable"] += unavailable

    def snapshot(self) -> PerkSnapshot:
        with self._lock:
            return PerkSnapshot(
                redemptions=dict(self._redemptions),
                by_perk_type={key: dict(value) for key, value in self._by_perk_type.items()},
                evaluations=dict(self._evaluations),
            )

    def reset(self) -> None:
        with self._lock:
            self._redemptions.clear()
            self._by_perk_type.clear()
            self._evaluations.clear()


_STORE = PerkObservabilityStore()


def get_perk_store() -> PerkObservabilityStore:
    return _STORE


__all__ = ["get_perk_store", "PerkObservabilityStore", "PerkSnapshot"]
