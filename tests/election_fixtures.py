#!/usr/bin/env python3
"""
Shared election fixture for the test suite.

Ballot style 1_en covers two sheets: mayor and council on the front of
sheet 1, prop1 and sheriff on the front of sheet 2. The second mayor
write-in slot is printed on sheet 2 as well. Ballot style 3_en has a
single one-candidate contest and no grid layout.
"""

import copy
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from election_types import Election


def _option(sheet, side, column, row, contest_id, option_id):
    return {
        "type": "option",
        "sheetNumber": sheet,
        "side": side,
        "column": column,
        "row": row,
        "contestId": contest_id,
        "optionId": option_id,
    }


ELECTION_DATA = {
    "title": "Test General Election",
    "state": "Test State",
    "county": {"id": "county-1", "name": "Test County"},
    "date": "2026-11-03",
    "type": "general",
    "parties": [{"id": "party-1", "name": "Party One", "abbrev": "P1"}],
    "precincts": [
        {"id": "p1", "name": "North Precinct"},
        {"id": "p2", "name": "South Precinct"},
        {"id": "p3", "name": "East Precinct"},
    ],
    "ballotStyles": [
        {"id": "1_en", "precincts": ["p1"], "districts": ["d1", "d2"]},
        {"id": "2_en", "precincts": ["p1", "p2"], "districts": ["d2"]},
        {"id": "3_en", "precincts": ["p3"], "districts": ["d3"]},
    ],
    "contests": [
        {
            "type": "candidate",
            "id": "mayor",
            "districtId": "d1",
            "title": "Mayor",
            "seats": 1,
            "allowWriteIns": True,
            "candidates": [
                {"id": "alice", "name": "Alice Adams", "partyIds": ["party-1"]},
                {"id": "bob", "name": "Bob Brown"},
            ],
        },
        {
            "type": "candidate",
            "id": "council",
            "districtId": "d1",
            "title": "City Council",
            "seats": 2,
            "allowWriteIns": False,
            "candidates": [
                {"id": "carol", "name": "Carol Clark"},
                {"id": "dave", "name": "Dave Davis"},
                {"id": "erin", "name": "Erin Evans"},
            ],
        },
        {
            "type": "yesno",
            "id": "prop1",
            "districtId": "d2",
            "title": "Proposition 1",
            "yesOption": {"id": "prop1-yes", "label": "Yes"},
            "noOption": {"id": "prop1-no", "label": "No"},
        },
        {
            "type": "candidate",
            "id": "sheriff",
            "districtId": "d2",
            "title": "Sheriff",
            "seats": 1,
            "allowWriteIns": False,
            "candidates": [{"id": "frank", "name": "Frank Fisher"}],
        },
        {
            "type": "candidate",
            "id": "clerk",
            "districtId": "d3",
            "title": "County Clerk",
            "seats": 1,
            "allowWriteIns": False,
            "candidates": [{"id": "gina", "name": "Gina Green"}],
        },
    ],
    "ballotLayout": {"paperSize": "letter", "metadataEncoding": "qr-code"},
    "gridLayouts": [
        {
            "ballotStyleId": "1_en",
            "optionBoundsFromTargetMark": {"x": 1, "y": 1, "width": 8, "height": 2},
            "gridPositions": [
                _option(1, "front", 2, 5, "mayor", "alice"),
                _option(1, "front", 2, 7, "mayor", "bob"),
                {
                    "type": "write-in",
                    "sheetNumber": 1,
                    "side": "front",
                    "column": 2,
                    "row": 9,
                    "contestId": "mayor",
                    "writeInIndex": 0,
                    "writeInArea": {"x": 3, "y": 8, "width": 10, "height": 2},
                },
                _option(1, "front", 20, 5, "council", "carol"),
                _option(1, "front", 20, 7, "council", "dave"),
                _option(1, "front", 20, 9, "council", "erin"),
                _option(2, "front", 2, 5, "prop1", "prop1-yes"),
                _option(2, "front", 2, 7, "prop1", "prop1-no"),
                _option(2, "front", 20, 5, "sheriff", "frank"),
                {
                    "type": "write-in",
                    "sheetNumber": 2,
                    "side": "front",
                    "column": 20,
                    "row": 9,
                    "contestId": "mayor",
                    "writeInIndex": 1,
                    "writeInArea": {"x": 21, "y": 8, "width": 10, "height": 2},
                },
            ],
        },
        {
            "ballotStyleId": "2_en",
            "optionBoundsFromTargetMark": {"x": 1, "y": 1, "width": 8, "height": 2},
            "gridPositions": [
                _option(1, "front", 2, 5, "prop1", "prop1-yes"),
                _option(1, "front", 2, 7, "prop1", "prop1-no"),
                _option(1, "back", 20, 5, "sheriff", "frank"),
            ],
        },
    ],
}


def election_data() -> dict:
    """A fresh copy of the raw election JSON."""
    return copy.deepcopy(ELECTION_DATA)


def make_election() -> Election:
    return Election.from_dict(election_data())
