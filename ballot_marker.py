#!/usr/bin/env python3
"""
Ballot marking and sheet splitting.

Contains: MarkedBallot, MarkedSheet, generate_marked_ballot,
generate_marked_ballot_for_pattern, skip_write_in_bubbles, sheet_count,
sheet_page_indices, get_votes_for_sheet, split_marked_ballot_into_sheets,
save_marked_sheets.

A marked ballot is split into the sheets a scanner is fed one at a time.
Each sheet carries only the votes physically printed on it, which is what
the scanner's record for that sheet is compared against.
"""

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import config
from election_loader import find_grid_position, get_grid_layout
from election_types import Election, GridLayout, GridPosition, GridPositionWriteIn, Vote, VotesDict
from logging_config import LogContext, get_logger
from mark_overlay import (
    Calibration,
    DrawDecision,
    MarkKind,
    OnDraw,
    OverlayRenderer,
    render_mark_overlay,
)
from pdf_utils import extract_pages, page_count
from vote_generator import BallotPattern, generate_pattern_votes

logger = get_logger(__name__)


@dataclass(frozen=True)
class MarkedBallot:
    ballot_style_id: str
    pattern: BallotPattern
    pdf_bytes: bytes
    votes: VotesDict


@dataclass(frozen=True)
class MarkedSheet:
    """One scanner-fed sheet (front and optional back) of a marked ballot."""
    ballot_style_id: str
    pattern: BallotPattern
    sheet_number: int
    pdf_bytes: bytes
    votes: VotesDict


def default_calibration() -> Calibration:
    return Calibration(offset_mm_x=config.mark_offset_mm_x, offset_mm_y=config.mark_offset_mm_y)


def skip_write_in_bubbles(mark_kind: MarkKind, grid_position: GridPosition, vote: Vote) -> DrawDecision:
    """Draw policy for unmarked write-ins: write the name, leave the bubble empty."""
    if mark_kind is MarkKind.BUBBLE and isinstance(grid_position, GridPositionWriteIn):
        return DrawDecision.IGNORE
    return DrawDecision.DRAW


def _require_grid_layout(election: Election, ballot_style_id: str) -> GridLayout:
    grid_layout = get_grid_layout(election, ballot_style_id)
    if grid_layout is None:
        raise LookupError(f"No grid layout found for ballot style: {ballot_style_id}")
    return grid_layout


def generate_marked_ballot(
    election: Election,
    ballot_style_id: str,
    votes: VotesDict,
    base_pdf: bytes,
    renderer: OverlayRenderer = render_mark_overlay,
    calibration: Optional[Calibration] = None,
    on_draw: Optional[OnDraw] = None,
) -> bytes:
    """
    Mark votes onto a ballot PDF.

    Args:
        election: Election with grid layouts
        ballot_style_id: Ballot style the PDF was printed for
        votes: Votes to mark
        base_pdf: The printed ballot PDF
        renderer: Overlay renderer that draws the marks
        calibration: Mark offset (defaults to configured offsets)
        on_draw: Optional per-mark draw policy

    Returns:
        Marked PDF bytes

    Raises:
        LookupError: If the ballot style has no grid layout
    """
    _require_grid_layout(election, ballot_style_id)
    calibration = calibration or default_calibration()

    with LogContext(logger, "Marking ballot", ballot_style=ballot_style_id, contests=len(votes)):
        return renderer(election, ballot_style_id, votes, calibration, base_pdf, on_draw)


def generate_marked_ballot_for_pattern(
    election: Election,
    ballot_style_id: str,
    pattern: BallotPattern,
    base_pdf: bytes,
    renderer: OverlayRenderer = render_mark_overlay,
    calibration: Optional[Calibration] = None,
) -> Optional[MarkedBallot]:
    """
    Generate a marked ballot for a test pattern.

    Returns:
        MarkedBallot, or None if the pattern is not applicable to the style
    """
    if pattern is BallotPattern.BLANK:
        return MarkedBallot(ballot_style_id=ballot_style_id, pattern=pattern, pdf_bytes=base_pdf, votes={})

    pattern_votes = generate_pattern_votes(election, ballot_style_id, pattern)
    if pattern_votes is None:
        logger.info(f"Skipping {pattern.value} ballot for style {ballot_style_id}: not applicable")
        return None

    votes = pattern_votes.to_votes_dict()
    on_draw = skip_write_in_bubbles if pattern is BallotPattern.UNMARKED_WRITE_IN else None
    pdf_bytes = generate_marked_ballot(
        election, ballot_style_id, votes, base_pdf,
        renderer=renderer, calibration=calibration, on_draw=on_draw,
    )
    return MarkedBallot(ballot_style_id=ballot_style_id, pattern=pattern, pdf_bytes=pdf_bytes, votes=votes)


def sheet_count(pages: int) -> int:
    return math.ceil(pages / 2)


def sheet_page_indices(sheet_number: int, pages: int) -> list[int]:
    """0-based page indices of a 1-based sheet; the back is omitted past the last page."""
    front = 2 * (sheet_number - 1)
    return [i for i in (front, front + 1) if i < pages]


def get_votes_for_sheet(grid_layout: GridLayout, votes: VotesDict, sheet_number: int) -> VotesDict:
    """
    Subset of votes whose bubbles are printed on the given sheet.

    Contests with no votes on the sheet are omitted. Vote order within a
    contest is preserved.
    """
    sheet_votes: VotesDict = {}
    for contest_id, contest_votes in votes.items():
        on_sheet = []
        for vote in contest_votes:
            gp = find_grid_position(grid_layout, contest_id, vote)
            if gp is not None and gp.sheet_number == sheet_number:
                on_sheet.append(vote)
        if on_sheet:
            sheet_votes[contest_id] = on_sheet
    return sheet_votes


def split_marked_ballot_into_sheets(election: Election, marked_ballot: MarkedBallot) -> list[MarkedSheet]:
    """
    Split a marked ballot into standalone per-sheet PDFs.

    Raises:
        LookupError: If the ballot style has no grid layout
    """
    grid_layout = _require_grid_layout(election, marked_ballot.ballot_style_id)
    pages = page_count(marked_ballot.pdf_bytes)
    count = sheet_count(pages)
    logger.debug(f"Ballot has {pages} page(s), {count} sheet(s)")

    sheets = []
    for sheet_number in range(1, count + 1):
        sheets.append(MarkedSheet(
            ballot_style_id=marked_ballot.ballot_style_id,
            pattern=marked_ballot.pattern,
            sheet_number=sheet_number,
            pdf_bytes=extract_pages(marked_ballot.pdf_bytes, sheet_page_indices(sheet_number, pages)),
            votes=get_votes_for_sheet(grid_layout, marked_ballot.votes, sheet_number),
        ))
    return sheets


def save_marked_sheets(sheets: list[MarkedSheet], output_dir: str) -> list[Path]:
    """Write sheet PDFs as ballot-{style}-{pattern}-sheet{n}.pdf."""
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    paths = []
    for sheet in sheets:
        path = directory / f"ballot-{sheet.ballot_style_id}-{sheet.pattern.value}-sheet{sheet.sheet_number}.pdf"
        path.write_bytes(sheet.pdf_bytes)
        paths.append(path)
        logger.debug(f"Saved sheet PDF: {path}")
    return paths
