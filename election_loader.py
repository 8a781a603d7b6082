#!/usr/bin/env python3
"""
Election definition loading and lookups.

Contains: load_election, load_election_package, BallotEntry (ballots.jsonl
schema), ElectionDefinition, ElectionPackage, get_ballot_style,
get_contests_for_ballot_style, get_ballot_styles_for_precinct,
get_precinct_name, get_grid_layout, find_contest, find_grid_position.

Usage:
    from election_loader import load_election_package, get_contests_for_ballot_style

    package = load_election_package("election-package.zip")
    election = package.election_definition.election
    contests = get_contests_for_ballot_style(election, "1_en")
"""

import base64
import binascii
import hashlib
import json
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from election_types import (
    BallotStyle,
    Contest,
    Election,
    GridLayout,
    GridPosition,
    GridPositionOption,
    GridPositionWriteIn,
    Vote,
    vote_option_id,
    write_in_slot,
)
from logging_config import get_logger

logger = get_logger(__name__)


class BallotEntry(BaseModel):
    """One line of ballots.jsonl inside an election package."""
    model_config = ConfigDict(extra="ignore")

    ballot_style_id: str = Field(alias="ballotStyleId", min_length=1)
    precinct_id: str = Field(alias="precinctId", min_length=1)
    ballot_type: Literal["precinct", "absentee"] = Field(alias="ballotType")
    ballot_mode: Literal["official", "test"] = Field(alias="ballotMode")
    compact: bool
    encoded_ballot: str = Field(alias="encodedBallot")


@dataclass(frozen=True)
class BallotPdfInfo:
    """A printable ballot PDF shipped in the election package."""
    ballot_style_id: str
    precinct_id: str
    ballot_type: str
    ballot_mode: str
    compact: bool
    pdf_data: bytes


@dataclass(frozen=True)
class ElectionDefinition:
    election: Election
    election_data: str
    ballot_hash: str


@dataclass
class ElectionPackage:
    election_definition: ElectionDefinition
    system_settings: dict = field(default_factory=dict)
    ballots: list[BallotPdfInfo] = field(default_factory=list)

    def find_ballot(
        self,
        ballot_style_id: str,
        ballot_mode: str = "official",
        ballot_type: str = "precinct",
    ) -> Optional[BallotPdfInfo]:
        """Find the ballot PDF for a style/mode/type combination."""
        for ballot in self.ballots:
            if (
                ballot.ballot_style_id == ballot_style_id
                and ballot.ballot_mode == ballot_mode
                and ballot.ballot_type == ballot_type
            ):
                return ballot
        return None


def calculate_ballot_hash(election_data: str) -> str:
    """Short SHA-256 fingerprint of the raw election JSON."""
    return hashlib.sha256(election_data.encode("utf-8")).hexdigest()[:16]


def parse_election_definition(election_data: str) -> ElectionDefinition:
    """Parse raw election.json text into an ElectionDefinition."""
    try:
        raw = json.loads(election_data)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid election JSON: {e}") from e

    return ElectionDefinition(
        election=Election.from_dict(raw),
        election_data=election_data,
        ballot_hash=calculate_ballot_hash(election_data),
    )


def parse_ballots_jsonl(content: str) -> list[BallotPdfInfo]:
    """
    Parse ballots.jsonl content.

    Lines that are not valid JSON, fail the BallotEntry schema, or carry
    undecodable base64 are skipped with a warning.

    Args:
        content: Raw text of ballots.jsonl

    Returns:
        Ballot PDFs in file order
    """
    ballots = []
    for line_number, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            entry = BallotEntry.model_validate(json.loads(line))
            pdf_data = base64.b64decode(entry.encoded_ballot, validate=True)
        except (json.JSONDecodeError, ValidationError, binascii.Error) as e:
            logger.warning(f"Skipping invalid ballots.jsonl line {line_number}: {e}")
            continue

        ballots.append(BallotPdfInfo(
            ballot_style_id=entry.ballot_style_id,
            precinct_id=entry.precinct_id,
            ballot_type=entry.ballot_type,
            ballot_mode=entry.ballot_mode,
            compact=entry.compact,
            pdf_data=pdf_data,
        ))
    return ballots


def load_election_package(zip_path: str) -> ElectionPackage:
    """
    Load an election package ZIP.

    Args:
        zip_path: Path to a ZIP containing election.json, and optionally
            systemSettings.json and ballots.jsonl

    Returns:
        ElectionPackage with the parsed election and any ballot PDFs
    """
    path = Path(zip_path)
    if not path.exists():
        raise FileNotFoundError(f"Election package not found: {zip_path}")

    logger.debug(f"Loading election package: {zip_path}")

    with zipfile.ZipFile(path) as archive:
        names = set(archive.namelist())
        if "election.json" not in names:
            raise ValueError("election.json not found in ZIP package")

        definition = parse_election_definition(archive.read("election.json").decode("utf-8"))

        system_settings = {}
        if "systemSettings.json" in names:
            system_settings = json.loads(archive.read("systemSettings.json").decode("utf-8"))

        ballots = []
        if "ballots.jsonl" in names:
            ballots = parse_ballots_jsonl(archive.read("ballots.jsonl").decode("utf-8"))

    logger.info(
        f"Loaded election '{definition.election.title}' "
        f"({len(definition.election.ballot_styles)} ballot styles, {len(ballots)} ballot PDFs)"
    )
    return ElectionPackage(
        election_definition=definition,
        system_settings=system_settings,
        ballots=ballots,
    )


def load_election(source: str) -> ElectionPackage:
    """
    Load an election from an election.json file or a package ZIP.

    Args:
        source: Path to a .json or .zip file

    Returns:
        ElectionPackage (without ballots when loaded from plain JSON)
    """
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Election source not found: {source}")

    ext = path.suffix.lower()
    if ext == ".zip":
        return load_election_package(source)
    if ext == ".json":
        logger.debug(f"Loading election from JSON: {source}")
        return ElectionPackage(election_definition=parse_election_definition(path.read_text(encoding="utf-8")))
    raise ValueError(f"Unsupported election source format: {ext}")


def get_ballot_style(election: Election, ballot_style_id: str) -> BallotStyle:
    """Look up a ballot style by id."""
    for ballot_style in election.ballot_styles:
        if ballot_style.id == ballot_style_id:
            return ballot_style
    raise LookupError(f"Ballot style not found: {ballot_style_id}")


def get_contests_for_ballot_style(election: Election, ballot_style_id: str) -> list[Contest]:
    """Contests whose district is on the ballot style, in declaration order."""
    ballot_style = get_ballot_style(election, ballot_style_id)
    districts = set(ballot_style.districts)
    return [contest for contest in election.contests if contest.district_id in districts]


def get_ballot_styles_for_precinct(election: Election, precinct_id: str) -> list[BallotStyle]:
    """Ballot styles available to voters in a precinct."""
    if not any(precinct.id == precinct_id for precinct in election.precincts):
        raise LookupError(f"Precinct not found: {precinct_id}")
    return [bs for bs in election.ballot_styles if precinct_id in bs.precincts]


def get_precinct_name(election: Election, precinct_id: str) -> str:
    for precinct in election.precincts:
        if precinct.id == precinct_id:
            return precinct.name
    return precinct_id


def get_grid_layout(election: Election, ballot_style_id: str) -> Optional[GridLayout]:
    for grid_layout in election.grid_layouts:
        if grid_layout.ballot_style_id == ballot_style_id:
            return grid_layout
    return None


def find_contest(election: Election, contest_id: str) -> Optional[Contest]:
    for contest in election.contests:
        if contest.id == contest_id:
            return contest
    return None


def find_grid_position(grid_layout: GridLayout, contest_id: str, vote: Vote) -> Optional[GridPosition]:
    """
    Find the printed bubble a vote is marked in.

    Write-in votes (flagged, or carrying a ``write-in-{n}`` id) match a
    write-in position by slot; all other votes match an option position by
    option id.
    """
    write_in_index = write_in_slot(vote)
    if write_in_index is not None:
        for gp in grid_layout.grid_positions:
            if (
                isinstance(gp, GridPositionWriteIn)
                and gp.contest_id == contest_id
                and gp.write_in_index == write_in_index
            ):
                return gp
        return None

    option_id = vote_option_id(vote)
    for gp in grid_layout.grid_positions:
        if isinstance(gp, GridPositionOption) and gp.contest_id == contest_id and gp.option_id == option_id:
            return gp
    return None
