#!/usr/bin/env python3
"""
Mark overlay rendering.

Draws filled bubbles and handwritten-style write-in names onto a printed
ballot PDF at the grid positions the votes select. This is the low-level
drawing capability the ballot marker delegates to; it decides nothing about
which votes a pattern contains.

Contains: MarkKind, DrawDecision, Calibration, OverlayRenderer,
render_mark_overlay.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from reportlab.lib.units import inch, mm
from reportlab.pdfgen import canvas

from election_loader import find_grid_position, get_grid_layout
from election_types import Candidate, Election, GridPosition, GridPositionWriteIn, Vote, VotesDict
from logging_config import get_logger
from pdf_utils import overlay_pages
from proof_ballot import PageGeometry, fit_text, get_page_geometry, grid_to_pdf

logger = get_logger(__name__)

BUBBLE_WIDTH = 0.19 * inch
BUBBLE_HEIGHT = 0.13 * inch
WRITE_IN_FONT = "Helvetica"


class MarkKind(Enum):
    BUBBLE = "bubble"
    WRITE_IN_TEXT = "write-in-text"


class DrawDecision(Enum):
    DRAW = "draw"
    IGNORE = "ignore"


@dataclass(frozen=True)
class Calibration:
    """Scanner calibration offset applied to every mark, in millimetres."""
    offset_mm_x: float = 0.0
    offset_mm_y: float = 0.0


# on_draw(mark_kind, grid_position, vote) -> DrawDecision
OnDraw = Callable[[MarkKind, GridPosition, Vote], DrawDecision]

# renderer(election, ballot_style_id, votes, calibration, base_pdf, on_draw) -> marked PDF
OverlayRenderer = Callable[[Election, str, VotesDict, Calibration, bytes, Optional[OnDraw]], bytes]


@dataclass(frozen=True)
class _Mark:
    kind: MarkKind
    grid_position: GridPosition
    vote: Vote


def _should_draw(on_draw: Optional[OnDraw], mark: _Mark) -> bool:
    if on_draw is None:
        return True
    return on_draw(mark.kind, mark.grid_position, mark.vote) is DrawDecision.DRAW


def _draw_bubble(c: canvas.Canvas, x: float, y: float) -> None:
    c.setFillColorRGB(0, 0, 0)
    c.ellipse(x - BUBBLE_WIDTH / 2, y - BUBBLE_HEIGHT / 2, x + BUBBLE_WIDTH / 2, y + BUBBLE_HEIGHT / 2,
              stroke=0, fill=1)


def _draw_write_in_text(
    c: canvas.Canvas,
    grid_position: GridPositionWriteIn,
    candidate: Candidate,
    geometry: PageGeometry,
    dx: float,
    dy: float,
) -> None:
    area = grid_position.write_in_area
    left, top = grid_to_pdf(area.x, area.y, geometry)
    right, bottom = grid_to_pdf(area.x + area.width, area.y + area.height, geometry)

    text, size = fit_text(candidate.name, right - left - 4, WRITE_IN_FONT, 10, 5)
    c.setFillColorRGB(0, 0, 0)
    c.setFont(WRITE_IN_FONT, size)
    c.drawString(left + 2 + dx, bottom + (top - bottom - size) / 2 + dy, text)


def render_mark_overlay(
    election: Election,
    ballot_style_id: str,
    votes: VotesDict,
    calibration: Calibration,
    base_pdf: bytes,
    on_draw: Optional[OnDraw] = None,
) -> bytes:
    """
    Render votes onto a ballot PDF.

    Each vote is located by its grid position; votes with no matching grid
    position are logged and left unmarked. Write-in votes get a filled
    bubble and the candidate name in the write-in area, each subject to
    ``on_draw``.

    Args:
        election: Election with grid layouts
        ballot_style_id: Ballot style the PDF was printed for
        votes: Votes to mark
        calibration: Offset applied to every mark (x right, y down)
        base_pdf: The printed ballot PDF
        on_draw: Optional per-mark policy; IGNORE suppresses that mark

    Returns:
        Marked PDF bytes
    """
    grid_layout = get_grid_layout(election, ballot_style_id)
    if grid_layout is None:
        raise LookupError(f"No grid layout found for ballot style: {ballot_style_id}")

    geometry = get_page_geometry(election.ballot_layout.paper_size)
    dx = calibration.offset_mm_x * mm
    dy = -calibration.offset_mm_y * mm

    marks_by_page: dict[int, list[_Mark]] = {}
    for contest_id, contest_votes in votes.items():
        for vote in contest_votes:
            gp = find_grid_position(grid_layout, contest_id, vote)
            if gp is None:
                logger.warning(f"No grid position for vote {vote!r} in contest {contest_id}, not marking")
                continue
            page_marks = marks_by_page.setdefault(gp.page_index, [])
            page_marks.append(_Mark(MarkKind.BUBBLE, gp, vote))
            if isinstance(gp, GridPositionWriteIn) and isinstance(vote, Candidate):
                page_marks.append(_Mark(MarkKind.WRITE_IN_TEXT, gp, vote))

    def draw(c: canvas.Canvas, page_index: int, page_width: float, page_height: float) -> bool:
        drawn = False
        for mark in marks_by_page.get(page_index, []):
            if not _should_draw(on_draw, mark):
                continue
            if mark.kind is MarkKind.BUBBLE:
                x, y = grid_to_pdf(mark.grid_position.column, mark.grid_position.row, geometry)
                _draw_bubble(c, x + dx, y + dy)
            else:
                _draw_write_in_text(c, mark.grid_position, mark.vote, geometry, dx, dy)
            drawn = True
        return drawn

    return overlay_pages(base_pdf, draw)
