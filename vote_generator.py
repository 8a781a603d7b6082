#!/usr/bin/env python3
"""
Vote pattern generation for test ballots.

Contains: BallotPattern, PatternVotes, generate_blank_votes,
generate_valid_votes, generate_overvote_votes, generate_write_in_votes,
generate_marked_write_in_votes, generate_unmarked_write_in_votes,
generate_pattern_votes, generate_vote_patterns, describe_votes, has_overvote.

Every generator is a pure function of the contests it is given. A pattern
that cannot be produced for a ballot style ("not applicable") is returned
as None, never raised; callers skip that pattern for that style.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from config import config
from election_loader import get_contests_for_ballot_style
from election_types import (
    Candidate,
    CandidateContest,
    Contest,
    Election,
    Vote,
    VotesDict,
    YesNoContest,
    make_write_in_candidate,
)
from logging_config import get_logger

logger = get_logger(__name__)


class BallotPattern(Enum):
    """Named test patterns a ballot can be marked with."""
    BLANK = "blank"
    VALID = "valid"
    OVERVOTE = "overvote"
    MARKED_WRITE_IN = "marked-write-in"
    UNMARKED_WRITE_IN = "unmarked-write-in"


@dataclass(frozen=True)
class PatternVotes:
    """The votes one pattern produced for one ballot style."""
    pattern: BallotPattern
    ballot_style_id: str
    votes: Mapping[str, tuple[Vote, ...]]

    @classmethod
    def create(cls, pattern: BallotPattern, ballot_style_id: str, votes: VotesDict) -> "PatternVotes":
        frozen = MappingProxyType({contest_id: tuple(v) for contest_id, v in votes.items()})
        return cls(pattern=pattern, ballot_style_id=ballot_style_id, votes=frozen)

    def to_votes_dict(self) -> VotesDict:
        """Return a mutable copy of the votes."""
        return {contest_id: list(v) for contest_id, v in self.votes.items()}


def _unexpected_contest(contest) -> ValueError:
    return ValueError(f"Unexpected contest type: {getattr(contest, 'type', type(contest).__name__)}")


def _real_candidates(contest: CandidateContest) -> list[Candidate]:
    return [c for c in contest.candidates if not c.is_write_in]


def _select_for_seats(contest: CandidateContest) -> list[Candidate]:
    """Fill every seat: declared candidates first, then write-ins if allowed."""
    selected = _real_candidates(contest)[:contest.seats]
    if contest.allow_write_ins:
        for index in range(contest.seats - len(selected)):
            selected.append(make_write_in_candidate(index))
    return selected


def generate_blank_votes() -> VotesDict:
    """Generate an empty ballot."""
    return {}


def generate_valid_votes(contests: Iterable[Contest]) -> VotesDict:
    """
    Generate the maximum number of valid votes in every contest.

    Candidate contests get their first ``seats`` candidates, topped up with
    synthetic write-ins when write-ins are allowed and candidates run out.
    Yes/no contests get "yes".
    """
    votes: VotesDict = {}
    for contest in contests:
        if isinstance(contest, CandidateContest):
            votes[contest.id] = _select_for_seats(contest)
        elif isinstance(contest, YesNoContest):
            votes[contest.id] = [contest.yes_option.id]
        else:
            raise _unexpected_contest(contest)
    return votes


def generate_overvote_votes(contests: Iterable[Contest]) -> Optional[VotesDict]:
    """
    Generate a minimal overvote in every contest that allows one.

    A candidate contest is overvoted with ``seats + 1`` selections drawn from
    its candidates plus one write-in per seat (when allowed). Contests whose
    pool is too small are voted normally. Yes/no contests mark both options.

    Returns:
        The votes, or None if no contest could be overvoted
    """
    votes: VotesDict = {}
    overvoted = []

    for contest in contests:
        if isinstance(contest, CandidateContest):
            pool = _real_candidates(contest)
            if contest.allow_write_ins:
                pool.extend(make_write_in_candidate(i) for i in range(contest.seats))

            if len(pool) > contest.seats:
                votes[contest.id] = pool[:contest.seats + 1]
                overvoted.append(contest.id)
            else:
                votes[contest.id] = _select_for_seats(contest)
        elif isinstance(contest, YesNoContest):
            votes[contest.id] = [contest.yes_option.id, contest.no_option.id]
            overvoted.append(contest.id)
        else:
            raise _unexpected_contest(contest)

    if not overvoted:
        logger.debug("No contest can be overvoted")
        return None

    logger.debug(f"Overvoted contests: {', '.join(overvoted)}")
    return votes


def generate_write_in_votes(contests: Iterable[Contest], name: Optional[str] = None) -> Optional[VotesDict]:
    """
    Generate one write-in vote in every contest that accepts write-ins.

    Yes/no contests and zero-seat contests are left blank.

    Args:
        contests: Contests on the ballot style
        name: Name written in the write-in area (defaults to config.write_in_name)

    Returns:
        The votes, or None if no contest accepts write-ins
    """
    name = name or config.write_in_name
    votes: VotesDict = {}

    for contest in contests:
        if isinstance(contest, CandidateContest):
            if contest.allow_write_ins and contest.seats > 0:
                votes[contest.id] = [make_write_in_candidate(0, name)]
        elif not isinstance(contest, YesNoContest):
            raise _unexpected_contest(contest)

    return votes or None


def generate_marked_write_in_votes(contests: Iterable[Contest], name: Optional[str] = None) -> Optional[VotesDict]:
    """Write-in votes with the bubble filled."""
    return generate_write_in_votes(contests, name)


def generate_unmarked_write_in_votes(contests: Iterable[Contest], name: Optional[str] = None) -> Optional[VotesDict]:
    """Write-in votes whose bubble is left empty; only the name is written."""
    return generate_write_in_votes(contests, name)


def generate_pattern_votes(
    election: Election,
    ballot_style_id: str,
    pattern: BallotPattern,
) -> Optional[PatternVotes]:
    """
    Generate the votes for one pattern on one ballot style.

    Returns:
        PatternVotes, or None if the pattern is not applicable to the style
    """
    contests = get_contests_for_ballot_style(election, ballot_style_id)

    if pattern is BallotPattern.BLANK:
        votes = generate_blank_votes()
    elif pattern is BallotPattern.VALID:
        votes = generate_valid_votes(contests)
    elif pattern is BallotPattern.OVERVOTE:
        votes = generate_overvote_votes(contests)
    elif pattern is BallotPattern.MARKED_WRITE_IN:
        votes = generate_marked_write_in_votes(contests)
    elif pattern is BallotPattern.UNMARKED_WRITE_IN:
        votes = generate_unmarked_write_in_votes(contests)
    else:
        raise ValueError(f"Unexpected ballot pattern: {pattern}")

    if votes is None:
        return None
    return PatternVotes.create(pattern, ballot_style_id, votes)


def generate_vote_patterns(
    election: Election,
    ballot_style_id: str,
    patterns: Iterable[BallotPattern],
) -> dict[BallotPattern, PatternVotes]:
    """Generate every applicable pattern for a ballot style."""
    result = {}
    for pattern in patterns:
        logger.debug(f"Generating {pattern.value} votes for ballot style {ballot_style_id}")
        pattern_votes = generate_pattern_votes(election, ballot_style_id, pattern)
        if pattern_votes is None:
            logger.info(f"Pattern {pattern.value} not applicable to ballot style {ballot_style_id}, skipping")
            continue
        result[pattern] = pattern_votes
    return result


def describe_votes(votes: Mapping[str, Iterable[Vote]], contests: Iterable[Contest]) -> str:
    """Human-readable one-line-per-contest summary of votes."""
    by_id = {contest.id: contest for contest in contests}
    descriptions = []

    for contest_id, contest_votes in votes.items():
        contest = by_id.get(contest_id)
        if contest is None:
            continue

        if isinstance(contest, CandidateContest):
            names = [v.name for v in contest_votes if isinstance(v, Candidate)]
            descriptions.append(f"{contest.title}: {', '.join(names)}")
        elif isinstance(contest, YesNoContest):
            labels = {contest.yes_option.id: contest.yes_option.label, contest.no_option.id: contest.no_option.label}
            chosen = [labels.get(v, v) for v in contest_votes if isinstance(v, str)]
            descriptions.append(f"{contest.title}: {', '.join(chosen)}")

    return "\n".join(descriptions)


def has_overvote(votes: Mapping[str, Iterable[Vote]], contests: Iterable[Contest]) -> bool:
    """Check if any contest has more selections than it allows."""
    by_id = {contest.id: contest for contest in contests}

    for contest_id, contest_votes in votes.items():
        contest = by_id.get(contest_id)
        if isinstance(contest, CandidateContest):
            if len(list(contest_votes)) > contest.seats:
                return True
        elif isinstance(contest, YesNoContest):
            if len(list(contest_votes)) > 1:
                return True

    return False
