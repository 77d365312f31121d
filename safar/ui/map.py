"""Interactive itinerary map view."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import pydeck as pdk
import streamlit as st

from safar.markers import marker_center
from safar.schemas import MapMarker

_MARKER_LAYER_ID = "itinerary-markers"

_TYPE_COLORS: Dict[str, Tuple[int, int, int, int]] = {
    "attraction": (232, 93, 76, 220),
    "restaurant": (34, 197, 94, 220),
    "hotel": (59, 130, 246, 220),
    "transport": (245, 158, 11, 220),
}


def _marker_day(marker: MapMarker) -> Optional[int]:
    parts = marker.id.split("-")
    if len(parts) >= 2 and parts[1].isdigit():
        return int(parts[1])
    return None


def marker_rows(markers: Sequence[MapMarker]) -> List[Dict[str, object]]:
    """Flatten markers into the records pydeck layers consume."""

    rows: List[Dict[str, object]] = []
    for marker in markers:
        rows.append(
            {
                "id": marker.id,
                "longitude": marker.coordinates.lng,
                "latitude": marker.coordinates.lat,
                "color": list(_TYPE_COLORS.get(marker.type, _TYPE_COLORS["attraction"])),
                "radius": 120 if marker.type == "hotel" else 80,
                "title": marker.name,
                "subtitle": marker.description or marker.type.capitalize(),
                "day": _marker_day(marker),
            }
        )
    return rows


def _zoom_for(count: int) -> int:
    if count <= 1:
        return 13
    if count <= 5:
        return 12
    return 11


def build_deck(markers: Sequence[MapMarker]) -> pdk.Deck:
    center = marker_center(markers)
    layers = []
    if markers:
        layers.append(
            pdk.Layer(
                "ScatterplotLayer",
                data=marker_rows(markers),
                id=_MARKER_LAYER_ID,
                get_position="[longitude, latitude]",
                get_fill_color="color",
                get_line_color=[255, 255, 255],
                get_radius="radius",
                radius_units="meters",
                radius_min_pixels=6,
                pickable=True,
                stroked=True,
            )
        )
    return pdk.Deck(
        map_style="https://basemaps.cartocdn.com/gl/positron-gl-style/style.json",
        layers=layers,
        initial_view_state=pdk.ViewState(latitude=center.lat, longitude=center.lng, zoom=_zoom_for(len(markers))),
        tooltip={
            "html": "<b>{title}</b><br/>{subtitle}",
            "style": {"backgroundColor": "#111", "color": "white"},
        },
    )


def render_map(markers: Sequence[MapMarker], *, key: str = "itinerary_map") -> None:
    """Render markers with a per-day filter."""

    if not markers:
        st.info("No mappable places were found in this itinerary.")
        return

    days = sorted({day for day in (_marker_day(marker) for marker in markers) if day is not None})
    options = ["All days", *[f"Day {day}" for day in days]]
    selection = st.radio("Show", options, horizontal=True, key=f"{key}_filter")
    visible = list(markers)
    if selection != "All days":
        chosen = int(selection.split()[-1])
        visible = [marker for marker in markers if _marker_day(marker) == chosen]

    st.pydeck_chart(build_deck(visible), key=key)


__all__ = ["build_deck", "marker_rows", "render_map"]
