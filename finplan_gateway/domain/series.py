"""Index of recurring/installment series keyed by SeriesId"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional

from finplan_gateway.domain.models import Entry, SeriesId


class SeriesIndex:
    """
    Map from SeriesId to the chronologically ordered occurrences of that series.

    Entries without series linkage are kept aside as standalone entries.
    """

    def __init__(self, entries: Iterable[Entry] = ()):
        self._series: Dict[SeriesId, List[Entry]] = defaultdict(list)
        self._standalone: List[Entry] = []
        for entry in entries:
            if entry.series_id is None:
                self._standalone.append(entry)
            else:
                self._series[entry.series_id].append(entry)
        for occurrences in self._series.values():
            occurrences.sort(key=lambda e: (e.posting_date, e.occurrence_index or 0))

    def __contains__(self, series_id: SeriesId) -> bool:
        return series_id in self._series

    def __len__(self) -> int:
        return len(self._series)

    def series_ids(self) -> List[SeriesId]:
        return list(self._series.keys())

    def occurrences(self, series_id: SeriesId) -> List[Entry]:
        return list(self._series.get(series_id, []))

    def occurrences_from(self, series_id: SeriesId, from_date: date) -> List[Entry]:
        """Occurrences posted on or after from_date ("this and all future")"""
        return [e for e in self._series.get(series_id, []) if e.posting_date >= from_date]

    def first(self, series_id: SeriesId) -> Optional[Entry]:
        occurrences = self._series.get(series_id)
        return occurrences[0] if occurrences else None

    def standalone(self) -> List[Entry]:
        return list(self._standalone)
