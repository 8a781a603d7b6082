#!/usr/bin/env python3
"""
PDF page helpers shared by marking and proof generation.

Contains: page_count, overlay_pages, extract_pages, blank_pdf.

Overlays are drawn with a reportlab canvas sized to each target page and
stamped onto that page with pypdf, so the base ballot is never re-rendered.
"""

import io
from typing import Callable, Sequence

from pypdf import PdfReader, PdfWriter
from reportlab.pdfgen import canvas

# draw(canvas, page_index, page_width, page_height) -> whether anything was drawn
PageDrawer = Callable[[canvas.Canvas, int, float, float], bool]


def _reader(pdf_bytes: bytes) -> PdfReader:
    return PdfReader(io.BytesIO(pdf_bytes))


def _to_bytes(writer: PdfWriter) -> bytes:
    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()


def page_count(pdf_bytes: bytes) -> int:
    return len(_reader(pdf_bytes).pages)


def overlay_pages(pdf_bytes: bytes, draw: PageDrawer) -> bytes:
    """
    Stamp a freshly drawn overlay onto each page of a PDF.

    Args:
        pdf_bytes: Base PDF
        draw: Called once per page with a canvas of the page's size

    Returns:
        The stamped PDF; pages keep their original dimensions
    """
    reader = _reader(pdf_bytes)
    writer = PdfWriter()

    for page_index, page in enumerate(reader.pages):
        width = float(page.mediabox.width)
        height = float(page.mediabox.height)

        buffer = io.BytesIO()
        overlay = canvas.Canvas(buffer, pagesize=(width, height))
        if draw(overlay, page_index, width, height):
            overlay.showPage()
            overlay.save()
            page.merge_page(_reader(buffer.getvalue()).pages[0])

        writer.add_page(page)

    return _to_bytes(writer)


def extract_pages(pdf_bytes: bytes, page_indices: Sequence[int]) -> bytes:
    """Copy the given pages (0-based) into a new standalone PDF."""
    reader = _reader(pdf_bytes)
    writer = PdfWriter()
    for index in page_indices:
        writer.add_page(reader.pages[index])
    return _to_bytes(writer)


def blank_pdf(page_width: float, page_height: float, pages: int = 2) -> bytes:
    """Create an empty PDF with ``pages`` pages of the given size."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(page_width, page_height))
    for _ in range(pages):
        c.showPage()
    c.save()
    return buffer.getvalue()
