#!/usr/bin/env python3
"""
Election data types.

Contains: Candidate, CandidateContest, YesNoContest, BallotStyle, Precinct,
Party, Rect, GridPositionOption, GridPositionWriteIn, GridLayout, Election,
the synthetic write-in identity helpers, and VotesDict JSON conversion.

All types are frozen and built from the camelCase election.json shape via
``from_dict``. Contest and grid position are closed tagged unions; the tag
is available as the class-level ``type`` attribute.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Optional, Union


WRITE_IN_ID_PREFIX = "write-in"
DEFAULT_WRITE_IN_NAME = "Write-In"


@dataclass(frozen=True)
class Candidate:
    """A candidate option, or a synthetic write-in candidate."""
    id: str
    name: str
    party_ids: tuple[str, ...] = ()
    is_write_in: bool = False
    write_in_index: Optional[int] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Candidate":
        return cls(
            id=d["id"],
            name=d.get("name", d["id"]),
            party_ids=tuple(d.get("partyIds") or ()),
            is_write_in=bool(d.get("isWriteIn", False)),
            write_in_index=d.get("writeInIndex"),
        )

    def to_dict(self) -> dict:
        d = {"id": self.id, "name": self.name}
        if self.party_ids:
            d["partyIds"] = list(self.party_ids)
        if self.is_write_in:
            d["isWriteIn"] = True
        if self.write_in_index is not None:
            d["writeInIndex"] = self.write_in_index
        return d


def make_write_in_candidate(index: int, name: str = DEFAULT_WRITE_IN_NAME) -> Candidate:
    """Build the synthetic write-in candidate occupying write-in slot ``index``."""
    return Candidate(
        id=f"{WRITE_IN_ID_PREFIX}-{index}",
        name=name,
        is_write_in=True,
        write_in_index=index,
    )


def is_write_in_id(option_id: str) -> bool:
    """Check if an option id belongs to a synthetic write-in candidate."""
    return option_id.startswith(WRITE_IN_ID_PREFIX)


def write_in_index_from_id(option_id: str) -> Optional[int]:
    """Slot number encoded in a ``write-in-{n}`` id, or None if there is none."""
    if not is_write_in_id(option_id):
        return None
    suffix = option_id[len(WRITE_IN_ID_PREFIX):].lstrip("-")
    return int(suffix) if suffix.isdigit() else None


def write_in_slot(vote: "Vote") -> Optional[int]:
    """
    Write-in slot a vote occupies, or None if it is not a write-in.

    An explicit ``write_in_index`` wins; otherwise the slot comes from the
    ``write-in-{n}`` id, defaulting to slot 0 for a bare ``write-in`` id.
    """
    option_id = vote if isinstance(vote, str) else vote.id
    flagged = isinstance(vote, Candidate) and vote.is_write_in
    if not flagged and not is_write_in_id(option_id):
        return None
    if isinstance(vote, Candidate) and vote.write_in_index is not None:
        return vote.write_in_index
    index = write_in_index_from_id(option_id)
    return index if index is not None else 0


@dataclass(frozen=True)
class YesNoOption:
    id: str
    label: str

    @classmethod
    def from_dict(cls, d: dict) -> "YesNoOption":
        return cls(id=d["id"], label=d.get("label", d["id"]))


@dataclass(frozen=True)
class CandidateContest:
    """A contest electing ``seats`` candidates."""
    type: ClassVar[str] = "candidate"

    id: str
    district_id: str
    title: str
    seats: int
    candidates: tuple[Candidate, ...] = ()
    allow_write_ins: bool = False

    def __post_init__(self):
        if self.seats < 0:
            raise ValueError(f"Contest {self.id} has negative seats: {self.seats}")

    @classmethod
    def from_dict(cls, d: dict) -> "CandidateContest":
        return cls(
            id=d["id"],
            district_id=d.get("districtId", ""),
            title=d.get("title", d["id"]),
            seats=int(d.get("seats", 1)),
            candidates=tuple(Candidate.from_dict(c) for c in d.get("candidates", [])),
            allow_write_ins=bool(d.get("allowWriteIns", False)),
        )


@dataclass(frozen=True)
class YesNoContest:
    """A ballot measure with exactly one yes and one no option."""
    type: ClassVar[str] = "yesno"

    id: str
    district_id: str
    title: str
    yes_option: YesNoOption
    no_option: YesNoOption

    @classmethod
    def from_dict(cls, d: dict) -> "YesNoContest":
        return cls(
            id=d["id"],
            district_id=d.get("districtId", ""),
            title=d.get("title", d["id"]),
            yes_option=YesNoOption.from_dict(d["yesOption"]),
            no_option=YesNoOption.from_dict(d["noOption"]),
        )


Contest = Union[CandidateContest, YesNoContest]


def contest_from_dict(d: dict) -> Contest:
    """Parse a contest, dispatching on its ``type`` tag."""
    contest_type = d.get("type")
    if contest_type == CandidateContest.type:
        return CandidateContest.from_dict(d)
    if contest_type == YesNoContest.type:
        return YesNoContest.from_dict(d)
    raise ValueError(f"Unexpected contest type: {contest_type}")


@dataclass(frozen=True)
class BallotStyle:
    id: str
    precincts: tuple[str, ...] = ()
    districts: tuple[str, ...] = ()
    group_id: Optional[str] = None
    party_id: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "BallotStyle":
        return cls(
            id=d["id"],
            precincts=tuple(d.get("precincts", [])),
            districts=tuple(d.get("districts", [])),
            group_id=d.get("groupId"),
            party_id=d.get("partyId"),
        )


@dataclass(frozen=True)
class Precinct:
    id: str
    name: str


@dataclass(frozen=True)
class Party:
    id: str
    name: str
    abbrev: str = ""


@dataclass(frozen=True)
class County:
    id: str
    name: str


@dataclass(frozen=True)
class BallotLayout:
    paper_size: str
    metadata_encoding: str = "qr-code"


@dataclass(frozen=True)
class Rect:
    """A rectangle in grid units (x/y are column/row of the top-left corner)."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_dict(cls, d: dict) -> "Rect":
        return cls(x=d["x"], y=d["y"], width=d["width"], height=d["height"])


@dataclass(frozen=True)
class GridPositionOption:
    """A printed bubble for a candidate or yes/no option."""
    type: ClassVar[str] = "option"

    sheet_number: int
    side: str  # 'front' or 'back'
    column: float
    row: float
    contest_id: str
    option_id: str

    @property
    def page_index(self) -> int:
        """0-based page of the ballot PDF this position is printed on."""
        return (self.sheet_number - 1) * 2 + (0 if self.side == "front" else 1)


@dataclass(frozen=True)
class GridPositionWriteIn:
    """A write-in bubble together with the area where the name is written."""
    type: ClassVar[str] = "write-in"

    sheet_number: int
    side: str
    column: float
    row: float
    contest_id: str
    write_in_index: int
    write_in_area: Rect

    @property
    def page_index(self) -> int:
        """0-based page of the ballot PDF this position is printed on."""
        return (self.sheet_number - 1) * 2 + (0 if self.side == "front" else 1)


GridPosition = Union[GridPositionOption, GridPositionWriteIn]


def grid_position_from_dict(d: dict) -> GridPosition:
    """Parse a grid position, dispatching on its ``type`` tag."""
    position_type = d.get("type")
    common = {
        "sheet_number": int(d["sheetNumber"]),
        "side": d["side"],
        "column": d["column"],
        "row": d["row"],
        "contest_id": d["contestId"],
    }
    if position_type == GridPositionOption.type:
        return GridPositionOption(option_id=d["optionId"], **common)
    if position_type == GridPositionWriteIn.type:
        return GridPositionWriteIn(
            write_in_index=int(d["writeInIndex"]),
            write_in_area=Rect.from_dict(d["writeInArea"]),
            **common,
        )
    raise ValueError(f"Unexpected grid position type: {position_type}")


@dataclass(frozen=True)
class GridLayout:
    ballot_style_id: str
    option_bounds_from_target_mark: Rect
    grid_positions: tuple[GridPosition, ...] = ()

    @classmethod
    def from_dict(cls, d: dict) -> "GridLayout":
        return cls(
            ballot_style_id=d["ballotStyleId"],
            option_bounds_from_target_mark=Rect.from_dict(
                d.get("optionBoundsFromTargetMark", {"x": 0, "y": 0, "width": 0, "height": 0})
            ),
            grid_positions=tuple(grid_position_from_dict(gp) for gp in d.get("gridPositions", [])),
        )


@dataclass(frozen=True)
class Election:
    """A loaded election definition. Read-only for the lifetime of a run."""
    title: str
    ballot_styles: tuple[BallotStyle, ...]
    precincts: tuple[Precinct, ...]
    contests: tuple[Contest, ...]
    ballot_layout: BallotLayout
    state: str = ""
    county: Optional[County] = None
    date: str = ""
    type: str = "general"  # 'general' or 'primary'
    parties: tuple[Party, ...] = ()
    grid_layouts: tuple[GridLayout, ...] = field(default=())

    @classmethod
    def from_dict(cls, d: dict) -> "Election":
        county = d.get("county")
        layout = d.get("ballotLayout") or {}
        return cls(
            title=d.get("title", ""),
            state=d.get("state", ""),
            county=County(id=county["id"], name=county.get("name", "")) if county else None,
            date=d.get("date", ""),
            type=d.get("type", "general"),
            ballot_styles=tuple(BallotStyle.from_dict(bs) for bs in d.get("ballotStyles", [])),
            precincts=tuple(Precinct(id=p["id"], name=p.get("name", p["id"])) for p in d.get("precincts", [])),
            contests=tuple(contest_from_dict(c) for c in d.get("contests", [])),
            parties=tuple(
                Party(id=p["id"], name=p.get("name", ""), abbrev=p.get("abbrev", ""))
                for p in d.get("parties", [])
            ),
            ballot_layout=BallotLayout(
                paper_size=layout.get("paperSize", "letter"),
                metadata_encoding=layout.get("metadataEncoding", "qr-code"),
            ),
            grid_layouts=tuple(GridLayout.from_dict(gl) for gl in d.get("gridLayouts") or []),
        )


# VotesDict maps contest id to an ordered list of votes.
# Candidate contests hold Candidate objects; yes/no contests hold option ids.
Vote = Union[Candidate, str]
VotesDict = dict[str, list[Vote]]


def vote_option_id(vote: Vote) -> str:
    """Resolve the option id a vote selects."""
    return vote if isinstance(vote, str) else vote.id


def votes_to_json(votes: VotesDict) -> dict:
    """Convert votes to their JSON shape."""
    return {
        contest_id: [v if isinstance(v, str) else v.to_dict() for v in contest_votes]
        for contest_id, contest_votes in votes.items()
    }


def votes_from_json(data: dict) -> VotesDict:
    """Rebuild votes from their JSON shape."""
    return {
        contest_id: [v if isinstance(v, str) else Candidate.from_dict(v) for v in contest_votes]
        for contest_id, contest_votes in data.items()
    }
