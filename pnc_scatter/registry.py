from __future__ import annotations

from dataclasses import dataclass
import logging

from pnc_scatter.series import Series, SeriesData, SeriesStyle


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeriesHandle:
    index: int
    name: str


class DatasetRegistry:
    """Maps stable entity names onto positions in an ordered series list.

    The list is laid out as a *named* region (indices ``0 .. named_count - 1``,
    one per resolved name) followed by a *positional* region whose slots are
    addressed by index only and may grow or shrink every frame. Named indices
    stay contiguous: truncation drops every name at or past the cut, and a new
    name first discards any positional tail so it lands right after the named
    region.
    """

    def __init__(self, series: list[Series] | None = None) -> None:
        self._series: list[Series] = series if series is not None else []
        self._name_to_index: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._series)

    @property
    def series(self) -> list[Series]:
        return self._series

    @property
    def named_count(self) -> int:
        return len(self._name_to_index)

    def names(self) -> list[str]:
        return sorted(self._name_to_index, key=self._name_to_index.__getitem__)

    def index_of(self, name: str) -> int | None:
        return self._name_to_index.get(name)

    def resolve_or_create(self, name: str) -> SeriesHandle:
        idx = self._name_to_index.get(name)
        if idx is not None:
            return SeriesHandle(index=idx, name=name)
        if len(self._series) > self.named_count:
            self.truncate_from(self.named_count)
        # Equals len(series) unless an earlier handle has not been filled yet.
        idx = self.named_count
        self._name_to_index[name] = idx
        return SeriesHandle(index=idx, name=name)

    def set_series(
        self,
        index: int,
        name: str,
        style: SeriesStyle,
        points: SeriesData,
        *,
        legend_exempt: bool = False,
    ) -> Series:
        if index < 0 or index > len(self._series):
            raise IndexError(f"series index out of range: {index} (length {len(self._series)})")
        if index < len(self._series):
            existing = self._series[index]
            existing.text = name
            existing.data = points
            return existing
        created = Series(
            name=name,
            label=name,
            data=points,
            style=style,
            show_text=style.show_label,
            text=name,
            special_marker=style.special_marker,
            legend_exempt=legend_exempt,
        )
        self._series.append(created)
        return created

    def update(
        self,
        handle: SeriesHandle,
        style: SeriesStyle,
        points: SeriesData,
        *,
        legend_exempt: bool = False,
    ) -> Series:
        return self.set_series(handle.index, handle.name, style, points, legend_exempt=legend_exempt)

    def truncate_from(self, index: int) -> int:
        index = max(0, index)
        removed = len(self._series) - index
        if removed <= 0:
            return 0
        del self._series[index:]
        stale = [name for name, idx in self._name_to_index.items() if idx >= index]
        for name in stale:
            del self._name_to_index[name]
        LOGGER.debug("truncated %d series from index %d (dropped names: %s)", removed, index, stale)
        return removed

    def reset(self) -> None:
        self._series.clear()
        self._name_to_index.clear()
