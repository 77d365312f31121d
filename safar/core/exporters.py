"""Export an itinerary as a small standalone PDF document."""

from __future__ import annotations

import textwrap
from io import BytesIO
from typing import Iterable, List, Tuple

from safar.schemas import BUDGET_CATEGORIES, DayPlan, Itinerary


_PAGE_TOP = 770
_PAGE_BOTTOM = 60
_LINE_HEIGHT = 14
_WRAP_WIDTH = 88

Line = Tuple[str, bool]


def _money(amount: float) -> str:
    return f"Rs. {amount:,.0f}"


def _pdf_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def _wrap_lines(text: str, width: int, indent: str = "") -> Iterable[str]:
    for line in text.splitlines():
        for wrapped in textwrap.wrap(line, width=width - len(indent)) or [""]:
            yield f"{indent}{wrapped}"


def _day_lines(day: DayPlan) -> List[Line]:
    heading = f"Day {day.day}"
    if day.date:
        heading += f" - {day.date.strftime('%A %d %B %Y')}"
    lines: List[Line] = [(heading, True)]
    for activity in day.activities:
        header = "  "
        if activity.time:
            header += f"[{activity.time}] "
        header += activity.name or "Activity"
        details = [part for part in (activity.location, activity.duration) if part]
        details.append(_money(activity.cost) if activity.cost else "Free")
        lines.append((f"{header} ({', '.join(details)})", False))
        if activity.description:
            lines.extend((wrapped, False) for wrapped in _wrap_lines(activity.description, _WRAP_WIDTH, "    "))
    for meal in day.meals:
        text = f"  {meal.type.capitalize()}: {meal.name or 'Meal'}"
        if meal.place:
            text += f" at {meal.place}"
        text += f" ({_money(meal.estimated_cost)})"
        lines.append((text, False))
        if meal.recommendation:
            lines.extend((wrapped, False) for wrapped in _wrap_lines(meal.recommendation, _WRAP_WIDTH, "    "))
    if day.accommodation:
        stay = day.accommodation
        location = f", {stay.location}" if stay.location else ""
        lines.append((f"  Stay: {stay.name or stay.type.capitalize()} ({stay.type}{location}) {_money(stay.cost)}", False))
    for tip in day.tips:
        lines.extend((wrapped, False) for wrapped in _wrap_lines(f"Tip: {tip}", _WRAP_WIDTH, "  "))
    lines.append(("", False))
    return lines


def itinerary_lines(itinerary: Itinerary) -> List[Line]:
    """The document as ``(text, bold)`` lines, before pagination."""

    lines: List[Line] = [(itinerary.title or "Trip Itinerary", True)]
    if itinerary.start_date and itinerary.end_date:
        lines.append(
            (
                f"{itinerary.destination}: {itinerary.start_date.strftime('%b %d, %Y')} to "
                f"{itinerary.end_date.strftime('%b %d, %Y')}",
                False,
            )
        )
    elif itinerary.destination:
        lines.append((itinerary.destination, False))
    if itinerary.best_time_to_visit:
        lines.append((f"Best time to visit: {itinerary.best_time_to_visit}", False))
    lines.append(("", False))

    for day in itinerary.days:
        lines.extend(_day_lines(day))

    breakdown = itinerary.budget_breakdown
    lines.append(("Budget", True))
    for key in BUDGET_CATEGORIES:
        lines.append((f"  {key.capitalize()}: {_money(getattr(breakdown, key))}", False))
    lines.append((f"  Total: {_money(breakdown.total)}", True))

    if itinerary.travel_routes:
        lines.append(("", False))
        lines.append(("Getting there", True))
        for route in itinerary.travel_routes:
            text = f"  {route.from_} to {route.to} by {route.mode or 'any mode'}"
            if route.duration:
                text += f", {route.duration}"
            text += f" ({_money(route.estimated_cost)})"
            lines.append((text, False))
            if route.recommendation:
                lines.extend((wrapped, False) for wrapped in _wrap_lines(route.recommendation, _WRAP_WIDTH, "    "))

    if itinerary.money_tips:
        lines.append(("", False))
        lines.append(("Money tips", True))
        for tip in itinerary.money_tips:
            lines.extend((wrapped, False) for wrapped in _wrap_lines(f"- {tip}", _WRAP_WIDTH, "  "))
    return lines


def _paginate(lines: List[Line]) -> List[bytes]:
    per_page = (_PAGE_TOP - _PAGE_BOTTOM) // _LINE_HEIGHT
    pages: List[bytes] = []
    for offset in range(0, max(len(lines), 1), per_page):
        commands: List[str] = []
        cursor_y = _PAGE_TOP
        for text, bold in lines[offset : offset + per_page]:
            font = "F2" if bold else "F1"
            commands.append(f"BT /{font} 11 Tf 60 {cursor_y} Td ({_pdf_escape(text)}) Tj ET")
            cursor_y -= _LINE_HEIGHT
        # Helvetica only covers Latin-1.
        pages.append("\n".join(commands).encode("latin-1", errors="replace"))
    return pages


def itinerary_to_pdf(itinerary: Itinerary) -> bytes:
    """Render the itinerary as a multi-page PDF document."""

    objects: List[bytes] = []

    def add_object(payload: bytes) -> int:
        objects.append(payload)
        return len(objects)

    pages_index = add_object(b"")
    font_regular_index = add_object(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Name /F1 >>")
    font_bold_index = add_object(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica-Bold /Name /F2 >>")

    page_indices: List[int] = []
    for stream in _paginate(itinerary_lines(itinerary)):
        contents_index = add_object(
            f"<< /Length {len(stream)} >>\nstream\n".encode("latin-1") + stream + b"\nendstream"
        )
        page_indices.append(
            add_object(
                (
                    f"<< /Type /Page /Parent {pages_index} 0 R /MediaBox [0 0 612 792] "
                    f"/Contents {contents_index} 0 R /Resources << /Font << /F1 {font_regular_index} 0 R "
                    f"/F2 {font_bold_index} 0 R >> >> >>"
                ).encode("latin-1")
            )
        )

    kids = " ".join(f"{index} 0 R" for index in page_indices)
    objects[pages_index - 1] = f"<< /Type /Pages /Count {len(page_indices)} /Kids [{kids}] >>".encode("latin-1")
    catalog_index = add_object(f"<< /Type /Catalog /Pages {pages_index} 0 R >>".encode("latin-1"))

    buffer = BytesIO()
    buffer.write(b"%PDF-1.4\n")
    offsets: List[int] = []
    for index, payload in enumerate(objects, start=1):
        offsets.append(buffer.tell())
        buffer.write(f"{index} 0 obj\n".encode("latin-1"))
        buffer.write(payload)
        buffer.write(b"\nendobj\n")
    xref_position = buffer.tell()
    buffer.write(f"xref\n0 {len(objects) + 1}\n".encode("latin-1"))
    buffer.write(b"0000000000 65535 f \n")
    for offset in offsets:
        buffer.write(f"{offset:010d} 00000 n \n".encode("latin-1"))
    buffer.write(b"trailer\n")
    buffer.write(f"<< /Size {len(objects) + 1} /Root {catalog_index} 0 R >>\n".encode("latin-1"))
    buffer.write(f"startxref\n{xref_position}\n%%EOF".encode("latin-1"))
    return buffer.getvalue()


def pdf_filename(itinerary: Itinerary) -> str:
    slug = "-".join((itinerary.title or "trip").split())
    return f"{slug}-itinerary.pdf"


__all__ = ["itinerary_lines", "itinerary_to_pdf", "pdf_filename"]
