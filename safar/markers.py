"""Views derived on demand from a validated itinerary."""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from safar.schemas import BUDGET_CATEGORIES, Coordinates, Itinerary, MapMarker


# New Delhi, used when nothing on the itinerary can be plotted.
DEFAULT_CENTER = Coordinates(lat=28.6139, lng=77.2090)


def build_map_markers(itinerary: Itinerary) -> List[MapMarker]:
    """Return map markers for every plottable activity and accommodation.

    Activities become ``attraction`` markers with id
    ``attraction-<day>-<index>`` where ``index`` is the activity's position
    within its day; a day's accommodation becomes ``hotel-<day>``. Entries
    without coordinates are skipped.
    """

    markers: List[MapMarker] = []
    for day in itinerary.days:
        for index, activity in enumerate(day.activities):
            if activity.coordinates is None:
                continue
            markers.append(
                MapMarker(
                    id=f"attraction-{day.day}-{index}",
                    name=activity.name or "Activity",
                    type="attraction",
                    coordinates=activity.coordinates,
                    description=activity.description or None,
                )
            )
        accommodation = day.accommodation
        if accommodation is not None and accommodation.coordinates is not None:
            markers.append(
                MapMarker(
                    id=f"hotel-{day.day}",
                    name=accommodation.name or "Hotel",
                    type="hotel",
                    coordinates=accommodation.coordinates,
                    description=accommodation.location or None,
                )
            )
    return markers


def marker_center(
    markers: Sequence[MapMarker], default: Coordinates = DEFAULT_CENTER
) -> Coordinates:
    if not markers:
        return default
    lat = sum(marker.coordinates.lat for marker in markers) / len(markers)
    lng = sum(marker.coordinates.lng for marker in markers) / len(markers)
    return Coordinates(lat=lat, lng=lng)


def budget_summary(itinerary: Itinerary) -> Dict[str, float]:
    """Budget figures for display: the breakdown plus planned per-day spend."""

    breakdown = itinerary.budget_breakdown
    summary: Dict[str, float] = {key: getattr(breakdown, key) for key in BUDGET_CATEGORIES}
    summary["total"] = breakdown.total
    summary["planned_daily_spend"] = round(sum(day.spend() for day in itinerary.days), 2)
    return summary


def day_spend(itinerary: Itinerary) -> List[Tuple[int, float]]:
    return [(day.day, round(day.spend(), 2)) for day in itinerary.days]


__all__ = ["DEFAULT_CENTER", "budget_summary", "build_map_markers", "day_spend", "marker_center"]
