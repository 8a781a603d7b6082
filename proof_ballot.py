#!/usr/bin/env python3
"""
Proof ballot generation.

Overlays contest/option labels on a ballot PDF so a reviewer can check which
contest and option every printed bubble belongs to. This is a design review
aid; it plays no part in marking or tabulation.

Contains: PAPER_SIZES, PageGeometry, get_page_geometry, grid_to_pdf,
fit_text, get_option_label, generate_proof_ballot.
"""

from dataclasses import dataclass

from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from config import config
from election_loader import find_contest, get_grid_layout
from election_types import (
    CandidateContest,
    Election,
    GridPosition,
    GridPositionWriteIn,
    YesNoContest,
)
from logging_config import LogContext, get_logger
from pdf_utils import overlay_pages

logger = get_logger(__name__)

IN = 72  # PDF points per inch

PAGE_MARGIN_LEFT = 0.19685 * IN
PAGE_MARGIN_TOP = 0.16667 * IN
TIMING_MARK_WIDTH = 0.1875 * IN
TIMING_MARK_HEIGHT = 0.0625 * IN

# Paper sizes in inches (width, height)
PAPER_SIZES = {
    "letter": (8.5, 11),
    "legal": (8.5, 14),
    "custom17": (8.5, 17),
    "custom18": (8.5, 18),
    "custom22": (8.5, 22),
    "custom-8.5x17": (8.5, 17),
    "custom-8.5x18": (8.5, 18),
    "custom-8.5x22": (8.5, 22),
}

REGULAR_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"
ELLIPSIS = "…"

LABEL_PADDING = 2
LABEL_GAP = 8
LINE_HEIGHT = 1.2
CROSS_SIZE = 3


@dataclass(frozen=True)
class PageGeometry:
    """Maps the ballot's timing-mark grid onto PDF page coordinates."""
    origin_x: float
    origin_y: float
    grid_width: float
    grid_height: float
    mark_count_x: int
    mark_count_y: int
    page_height: float


def get_page_geometry(paper_size: str) -> PageGeometry:
    """
    Compute the grid geometry for a paper size.

    The grid has 4 timing marks per inch across; down the page there are
    4 per inch less 3 for the top and bottom border.

    Raises:
        ValueError: If the paper size is not supported
    """
    if paper_size not in PAPER_SIZES:
        raise ValueError(f"Unsupported paper size: {paper_size}")

    width_in, height_in = PAPER_SIZES[paper_size]
    page_width = width_in * IN
    page_height = height_in * IN

    return PageGeometry(
        origin_x=PAGE_MARGIN_LEFT + TIMING_MARK_WIDTH / 2,
        origin_y=PAGE_MARGIN_TOP + TIMING_MARK_HEIGHT / 2,
        grid_width=page_width - 2 * PAGE_MARGIN_LEFT - TIMING_MARK_WIDTH,
        grid_height=page_height - 2 * PAGE_MARGIN_TOP - TIMING_MARK_HEIGHT,
        mark_count_x=int(width_in * 4),
        mark_count_y=int(height_in * 4 - 3),
        page_height=page_height,
    )


def grid_to_pdf(column: float, row: float, geometry: PageGeometry) -> tuple[float, float]:
    """Convert a grid (column, row) to PDF (x, y) in points."""
    x = geometry.origin_x + (column / (geometry.mark_count_x - 1)) * geometry.grid_width
    # PDF y-axis is bottom-up, grid row 0 is at the top
    top_down_y = geometry.origin_y + (row / (geometry.mark_count_y - 1)) * geometry.grid_height
    return x, geometry.page_height - top_down_y


def fit_text(text: str, max_width: float, font_name: str, max_size: float, min_size: float) -> tuple[str, float]:
    """
    Fit text into a box width.

    Shrinks the font in half-point steps from max_size down to min_size; if
    the text is still too wide it is truncated with an ellipsis.

    Returns:
        (text, font_size) guaranteed to be no wider than max_width when
        even a lone ellipsis fits
    """
    size = max_size
    while size >= min_size:
        if stringWidth(text, font_name, size) <= max_width:
            return text, size
        size -= 0.5

    truncated = text
    while len(truncated) > 1:
        truncated = truncated[:-1]
        candidate = truncated.rstrip() + ELLIPSIS
        if stringWidth(candidate, font_name, min_size) <= max_width:
            return candidate, min_size

    return ELLIPSIS, min_size


def get_option_label(election: Election, grid_position: GridPosition) -> str:
    """Human-readable label for the option a grid position represents."""
    contest = find_contest(election, grid_position.contest_id)
    if contest is None:
        return grid_position.contest_id

    if isinstance(grid_position, GridPositionWriteIn):
        return f"Write-in #{grid_position.write_in_index + 1}"

    if isinstance(contest, CandidateContest):
        for candidate in contest.candidates:
            if candidate.id == grid_position.option_id:
                return candidate.name
        return grid_position.option_id

    if isinstance(contest, YesNoContest):
        if grid_position.option_id == contest.yes_option.id:
            return contest.yes_option.label
        if grid_position.option_id == contest.no_option.id:
            return contest.no_option.label

    return grid_position.option_id


def _draw_cross(c: canvas.Canvas, x: float, y: float) -> None:
    c.setStrokeColorRGB(1, 0, 0)
    c.setLineWidth(1)
    c.line(x - CROSS_SIZE, y - CROSS_SIZE, x + CROSS_SIZE, y + CROSS_SIZE)
    c.line(x - CROSS_SIZE, y + CROSS_SIZE, x + CROSS_SIZE, y - CROSS_SIZE)


def _draw_label(c: canvas.Canvas, x: float, y: float, option_label: str, contest_title: str, label_width: float) -> None:
    inner_width = label_width - 2 * LABEL_PADDING
    option_text, option_size = fit_text(option_label, inner_width, BOLD_FONT, 7, 4)
    contest_text, contest_size = fit_text(contest_title, inner_width, REGULAR_FONT, 5.5, 3.5)

    box_height = (option_size + contest_size) * LINE_HEIGHT + 2 * LABEL_PADDING
    box_x = x - label_width - LABEL_GAP
    box_y = y - box_height / 2

    c.saveState()
    c.setFillColorRGB(0.85, 1, 0.85)
    c.setFillAlpha(0.8)
    c.setStrokeColorRGB(0, 0.5, 0)
    c.setLineWidth(0.5)
    c.rect(box_x, box_y, label_width, box_height, stroke=1, fill=1)
    c.restoreState()

    c.setFillColorRGB(0, 0, 0)
    c.setFont(BOLD_FONT, option_size)
    c.drawString(box_x + LABEL_PADDING, box_y + box_height - LABEL_PADDING - option_size, option_text)

    c.setFillColorRGB(0.3, 0.3, 0.3)
    c.setFont(REGULAR_FONT, contest_size)
    c.drawString(box_x + LABEL_PADDING, box_y + LABEL_PADDING, contest_text)


def _draw_write_in_area(c: canvas.Canvas, grid_position: GridPositionWriteIn, geometry: PageGeometry, contest_title: str) -> None:
    area = grid_position.write_in_area
    left, top = grid_to_pdf(area.x, area.y, geometry)
    right, bottom = grid_to_pdf(area.x + area.width, area.y + area.height, geometry)
    rect_width = right - left
    rect_height = top - bottom

    c.saveState()
    c.setFillColorRGB(0.96, 0.87, 0.7)
    c.setFillAlpha(0.5)
    c.setStrokeColorRGB(0.7, 0.5, 0.2)
    c.setLineWidth(0.5)
    c.rect(left, bottom, rect_width, rect_height, stroke=1, fill=1)
    c.restoreState()

    caption, size = fit_text(
        f"Write-in #{grid_position.write_in_index + 1} - {contest_title}",
        rect_width - 4,
        REGULAR_FONT,
        6,
        3.5,
    )
    c.setFillColorRGB(0.4, 0.3, 0.1)
    c.setFont(REGULAR_FONT, size)
    c.drawString(left + 2, bottom + rect_height - size - 2, caption)


def _annotate_page(
    c: canvas.Canvas,
    grid_positions: list[GridPosition],
    geometry: PageGeometry,
    election: Election,
    label_width: float,
) -> None:
    for gp in grid_positions:
        x, y = grid_to_pdf(gp.column, gp.row, geometry)
        contest = find_contest(election, gp.contest_id)
        contest_title = contest.title if contest else gp.contest_id

        _draw_cross(c, x, y)
        _draw_label(c, x, y, get_option_label(election, gp), contest_title, label_width)

        if isinstance(gp, GridPositionWriteIn):
            _draw_write_in_area(c, gp, geometry, contest_title)


def generate_proof_ballot(election: Election, ballot_style_id: str, base_pdf: bytes) -> bytes:
    """
    Generate a proof ballot for a ballot style.

    Page i of the ballot is sheet i // 2 + 1; even pages are fronts and odd
    pages are backs.

    Args:
        election: Election with grid layouts
        ballot_style_id: Ballot style the PDF was printed for
        base_pdf: The printed ballot PDF

    Returns:
        Annotated PDF bytes with the same pages and page sizes

    Raises:
        LookupError: If the ballot style has no grid layout
        ValueError: If the election's paper size is unsupported
    """
    grid_layout = get_grid_layout(election, ballot_style_id)
    if grid_layout is None:
        raise LookupError(f"No grid layout found for ballot style: {ballot_style_id}")

    geometry = get_page_geometry(election.ballot_layout.paper_size)
    label_width = config.proof_label_width

    def draw(c: canvas.Canvas, page_index: int, page_width: float, page_height: float) -> bool:
        sheet_number = page_index // 2 + 1
        side = "front" if page_index % 2 == 0 else "back"
        positions = [
            gp for gp in grid_layout.grid_positions
            if gp.sheet_number == sheet_number and gp.side == side
        ]
        if not positions:
            return False
        _annotate_page(c, positions, geometry, election, label_width)
        return True

    with LogContext(logger, "Generating proof ballot", ballot_style=ballot_style_id):
        return overlay_pages(base_pdf, draw)
