"""
Persistence for calculation history and named scenarios.

History:   newest-first list capped at HISTORY_MAX_ENTRIES; adding beyond the cap
           evicts the oldest entry.
Scenarios: key-value store of saved scenarios keyed by name.

Both are backed by a single JSON file each. A missing file is an empty store;
an unreadable or corrupt file is logged and treated as empty. Write errors
propagate to the caller.
"""

import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from car_allowance.data.rates import HISTORY_MAX_ENTRIES
from car_allowance.models import CalculationResult, HistoryEntry, Scenario

logger = logging.getLogger(__name__)

_HISTORY_ADAPTER = TypeAdapter(list[HistoryEntry])
_SCENARIOS_ADAPTER = TypeAdapter(dict[str, Scenario])


def _read_json(path: Path, adapter: TypeAdapter, empty):
    if not path.exists():
        return empty
    try:
        return adapter.validate_json(path.read_bytes())
    except (OSError, ValidationError) as exc:
        logger.warning("Ignoring unreadable store %s: %s", path, exc)
        return empty


def _write_json(path: Path, adapter: TypeAdapter, value) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(adapter.dump_json(value, indent=2))


class HistoryStore:
    """Bounded, newest-first calculation history."""

    def __init__(self, path: Path, max_entries: int = HISTORY_MAX_ENTRIES) -> None:
        self.path = path
        self.max_entries = max_entries
        self._entries: list[HistoryEntry] = _read_json(path, _HISTORY_ADAPTER, [])
        del self._entries[max_entries:]
        logger.debug("Loaded %d history entries from %s", len(self._entries), path)

    @property
    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, scenario: Scenario, calculation: CalculationResult) -> HistoryEntry:
        """Record a calculation at the front and persist."""
        entry = HistoryEntry(scenario=scenario, calculation=calculation)
        self._entries.insert(0, entry)
        evicted = self._entries[self.max_entries:]
        del self._entries[self.max_entries:]
        if evicted:
            logger.debug("Evicted %d oldest history entries", len(evicted))
        self.save()
        return entry

    def get(self, index: int) -> HistoryEntry:
        """0 = most recent."""
        return self._entries[index]

    def clear(self) -> None:
        self._entries.clear()
        self.save()
        logger.info("History cleared")

    def save(self) -> None:
        _write_json(self.path, _HISTORY_ADAPTER, self._entries)


class ScenarioStore:
    """Saved scenarios keyed by name."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _load_all(self) -> dict[str, Scenario]:
        return _read_json(self.path, _SCENARIOS_ADAPTER, {})

    def names(self) -> list[str]:
        return sorted(self._load_all())

    def load(self, name: str) -> Scenario | None:
        return self._load_all().get(name)

    def save(self, scenario: Scenario, name: str | None = None) -> str:
        """Store under `name` (defaults to scenario.name); overwrites. Returns the key."""
        key = name or scenario.name
        scenarios = self._load_all()
        scenarios[key] = scenario
        _write_json(self.path, _SCENARIOS_ADAPTER, scenarios)
        logger.info("Saved scenario %r", key)
        return key

    def delete(self, name: str) -> bool:
        scenarios = self._load_all()
        if scenarios.pop(name, None) is None:
            return False
        _write_json(self.path, _SCENARIOS_ADAPTER, scenarios)
        logger.info("Deleted scenario %r", name)
        return True
