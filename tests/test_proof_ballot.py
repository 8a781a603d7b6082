#!/usr/bin/env python3
"""
Unit tests for proof_ballot.py geometry, labels and annotation.

Run with: python tests/test_proof_ballot.py
"""

import dataclasses
import io
import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from pypdf import PdfReader
from reportlab.lib.pagesizes import legal, letter
from reportlab.pdfbase.pdfmetrics import stringWidth

from election_fixtures import make_election
from election_loader import get_grid_layout
from election_types import BallotLayout, GridPositionOption
from pdf_utils import blank_pdf
from proof_ballot import (
    BOLD_FONT,
    ELLIPSIS,
    IN,
    PAGE_MARGIN_LEFT,
    PAGE_MARGIN_TOP,
    TIMING_MARK_HEIGHT,
    TIMING_MARK_WIDTH,
    fit_text,
    generate_proof_ballot,
    get_option_label,
    get_page_geometry,
    grid_to_pdf,
)


class TestPageGeometry(unittest.TestCase):
    """Tests for paper size to grid geometry."""

    def test_letter(self):
        geometry = get_page_geometry("letter")
        self.assertEqual(geometry.mark_count_x, 34)
        self.assertEqual(geometry.mark_count_y, 41)
        self.assertEqual(geometry.page_height, 11 * IN)
        self.assertAlmostEqual(geometry.origin_x, PAGE_MARGIN_LEFT + TIMING_MARK_WIDTH / 2)
        self.assertAlmostEqual(geometry.origin_y, PAGE_MARGIN_TOP + TIMING_MARK_HEIGHT / 2)
        self.assertAlmostEqual(geometry.grid_width, 8.5 * IN - 2 * PAGE_MARGIN_LEFT - TIMING_MARK_WIDTH)

    def test_legal(self):
        geometry = get_page_geometry("legal")
        self.assertEqual(geometry.mark_count_x, 34)
        self.assertEqual(geometry.mark_count_y, 53)

    def test_custom_sizes(self):
        self.assertEqual(get_page_geometry("custom22").mark_count_y, 85)
        self.assertEqual(
            get_page_geometry("custom-8.5x17"),
            get_page_geometry("custom17"),
        )

    def test_unsupported_size(self):
        with self.assertRaises(ValueError) as ctx:
            get_page_geometry("a4")
        self.assertIn("a4", str(ctx.exception))

    def test_grid_corners(self):
        geometry = get_page_geometry("letter")

        x, y = grid_to_pdf(0, 0, geometry)
        self.assertAlmostEqual(x, geometry.origin_x)
        self.assertAlmostEqual(y, geometry.page_height - geometry.origin_y)

        x, y = grid_to_pdf(33, 40, geometry)
        self.assertAlmostEqual(x, geometry.origin_x + geometry.grid_width)
        self.assertAlmostEqual(y, geometry.page_height - geometry.origin_y - geometry.grid_height)

    def test_grid_rows_go_down_the_page(self):
        geometry = get_page_geometry("letter")
        _, top = grid_to_pdf(5, 1, geometry)
        _, lower = grid_to_pdf(5, 2, geometry)
        self.assertLess(lower, top)


class TestFitText(unittest.TestCase):
    """Tests for shrinking and truncating label text."""

    def test_fits_at_max_size(self):
        self.assertEqual(fit_text("Alice", 100, BOLD_FONT, 7, 4), ("Alice", 7))

    def test_shrinks_before_truncating(self):
        text = "Alice Adams"
        width_at_5 = stringWidth(text, BOLD_FONT, 5)
        result, size = fit_text(text, width_at_5, BOLD_FONT, 7, 4)
        self.assertEqual(result, text)
        self.assertEqual(size, 5)

    def test_truncates_with_ellipsis(self):
        text = "A very long candidate name that cannot possibly fit"
        result, size = fit_text(text, 40, BOLD_FONT, 7, 4)
        self.assertEqual(size, 4)
        self.assertTrue(result.endswith(ELLIPSIS))
        self.assertLessEqual(stringWidth(result, BOLD_FONT, size), 40)

    def test_nothing_fits(self):
        self.assertEqual(fit_text("Alice", 0.1, BOLD_FONT, 7, 4), (ELLIPSIS, 4))


class TestOptionLabels(unittest.TestCase):
    """Tests for proof ballot label text."""

    def setUp(self):
        self.election = make_election()
        self.positions = get_grid_layout(self.election, "1_en").grid_positions

    def test_candidate_name(self):
        self.assertEqual(get_option_label(self.election, self.positions[0]), "Alice Adams")

    def test_write_in(self):
        self.assertEqual(get_option_label(self.election, self.positions[2]), "Write-in #1")

    def test_yes_no(self):
        self.assertEqual(get_option_label(self.election, self.positions[6]), "Yes")
        self.assertEqual(get_option_label(self.election, self.positions[7]), "No")

    def test_unknown_option_falls_back_to_id(self):
        gp = GridPositionOption(1, "front", 1, 1, "mayor", "zed")
        self.assertEqual(get_option_label(self.election, gp), "zed")

    def test_unknown_contest_falls_back_to_contest_id(self):
        gp = GridPositionOption(1, "front", 1, 1, "ghost", "zed")
        self.assertEqual(get_option_label(self.election, gp), "ghost")


class TestGenerateProofBallot(unittest.TestCase):
    """Tests for generate_proof_ballot."""

    def setUp(self):
        self.election = make_election()

    def test_pages_and_sizes_preserved(self):
        base_pdf = blank_pdf(*letter, pages=4)
        result = generate_proof_ballot(self.election, "1_en", base_pdf)

        reader = PdfReader(io.BytesIO(result))
        self.assertEqual(len(reader.pages), 4)
        for page in reader.pages:
            self.assertEqual((float(page.mediabox.width), float(page.mediabox.height)), letter)

    def test_labels_drawn(self):
        result = generate_proof_ballot(self.election, "1_en", blank_pdf(*letter, pages=4))
        reader = PdfReader(io.BytesIO(result))
        self.assertIn("Carol Clark", reader.pages[0].extract_text())
        self.assertIn("Frank Fisher", reader.pages[2].extract_text())

    def test_back_side_positions(self):
        result = generate_proof_ballot(self.election, "2_en", blank_pdf(*letter, pages=2))
        reader = PdfReader(io.BytesIO(result))
        self.assertIn("Frank Fisher", reader.pages[1].extract_text())
        self.assertNotIn("Frank Fisher", reader.pages[0].extract_text())

    def test_missing_grid_layout(self):
        with self.assertRaises(LookupError):
            generate_proof_ballot(self.election, "3_en", blank_pdf(*letter))

    def test_unsupported_paper_size(self):
        election = dataclasses.replace(self.election, ballot_layout=BallotLayout(paper_size="a4"))
        with self.assertRaises(ValueError):
            generate_proof_ballot(election, "1_en", blank_pdf(*legal))


if __name__ == "__main__":
    unittest.main()
