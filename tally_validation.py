#!/usr/bin/env python3
"""
Tally reconciliation against the exported tally report.

Contains: parse_csv_line, parse_tally_csv, build_expected_votes,
find_tally_csv_output, compare_votes, validate_tally_results,
revalidate_tally_results.

Expected votes come from the sheets the scanner accepted plus any manually
entered tallies. Actual votes come from the tally report CSV exported by the
system under test, laid out as:

    <title row>
    Contest,Contest ID,Selection,Selection ID,Total Votes
    Mayor,mayor,Alice,alice,3
    ...

A mismatch is reported data, not an exception.
"""

import re
from pathlib import Path
from typing import Optional

from artifacts import (
    ArtifactCollection,
    ManualTallyOutput,
    ReportOutput,
    ScanResultOutput,
    ValidationResult,
    load_collection,
)
from election_types import is_write_in_id, vote_option_id
from logging_config import get_logger
from vote_generator import BallotPattern

logger = get_logger(__name__)

# contest id -> option id -> count
VoteCounts = dict[str, dict[str, int]]

WRITE_IN_BUCKET = "write-in"
CSV_DATA_START_LINE = 2
CSV_MIN_FIELDS = 5
ACCOUNTING_SELECTIONS = ("overvotes", "undervotes")

# Vote counts are plain base-10 integers with an optional minus sign.
COUNT_PATTERN = re.compile(r"-?[0-9]+")


def parse_csv_line(line: str) -> list[str]:
    """
    Split one CSV line into fields (RFC 4180 quoting).

    Quoted fields keep embedded commas and surrounding whitespace, and a
    doubled quote inside them is a literal quote. Unquoted fields are
    stripped.

    Example:
        >>> parse_csv_line('Article 2,id1,"Yes, of course",id2,2')
        ['Article 2', 'id1', 'Yes, of course', 'id2', '2']
    """
    fields = []
    current = []
    in_quotes = False
    was_quoted = False

    def finish():
        value = "".join(current)
        fields.append(value if was_quoted else value.strip())

    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
                was_quoted = True
        elif char == "," and not in_quotes:
            finish()
            current = []
            was_quoted = False
        else:
            current.append(char)
        i += 1

    finish()
    return fields


def _parse_count(value: str) -> Optional[int]:
    if not value:
        return 0
    if not COUNT_PATTERN.fullmatch(value):
        return None
    return int(value)


def parse_tally_csv(content: str) -> VoteCounts:
    """
    Parse tally report CSV content into vote counts.

    Blank lines, short rows, non-numeric counts, and the overvote/undervote
    accounting rows are skipped. Counts for a repeated selection are summed.
    """
    actual: VoteCounts = {}
    lines = content.strip().split("\n")

    for line in lines[CSV_DATA_START_LINE:]:
        if not line.strip():
            continue
        fields = parse_csv_line(line.rstrip("\r"))
        if len(fields) < CSV_MIN_FIELDS:
            continue

        contest_id = fields[1]
        selection_id = fields[3]
        votes = _parse_count(fields[4])
        if votes is None or selection_id in ACCOUNTING_SELECTIONS:
            continue

        contest_counts = actual.setdefault(contest_id, {})
        contest_counts[selection_id] = contest_counts.get(selection_id, 0) + votes

    return actual


def build_expected_votes(collection: ArtifactCollection) -> VoteCounts:
    """
    Aggregate the votes the tally should contain.

    Counts every vote on accepted scanned sheets, except sheets marked with
    the unmarked write-in pattern, whose write-in bubble is left empty. All
    write-in candidates share one ``write-in`` bucket. Manual tallies are
    added on top.
    """
    expected: VoteCounts = {}
    scanned_sheets = 0

    for output in collection.iter_outputs():
        if not isinstance(output, ScanResultOutput):
            continue
        if not output.accepted or output.mark_pattern == BallotPattern.UNMARKED_WRITE_IN.value:
            continue
        scanned_sheets += 1

        for contest_id, contest_votes in output.votes.items():
            contest_counts = expected.setdefault(contest_id, {})
            for vote in contest_votes:
                option_id = vote_option_id(vote)
                if is_write_in_id(option_id):
                    option_id = WRITE_IN_BUCKET
                contest_counts[option_id] = contest_counts.get(option_id, 0) + 1

    for output in collection.iter_outputs():
        if not isinstance(output, ManualTallyOutput):
            continue
        for contest_id, option_counts in output.tallies.items():
            contest_counts = expected.setdefault(contest_id, {})
            for option_id, count in option_counts.items():
                contest_counts[option_id] = contest_counts.get(option_id, 0) + count

    logger.debug(f"Expected votes built from {scanned_sheets} scanned sheet(s)")
    return expected


def find_tally_csv_output(collection: ArtifactCollection) -> ReportOutput:
    """
    Find the tally report CSV among the collection's outputs.

    Raises:
        LookupError: If no report output points at a tally-report CSV
    """
    tally_output = None
    for output in collection.iter_outputs():
        if isinstance(output, ReportOutput) and output.is_tally_csv:
            tally_output = output
    if tally_output is None:
        raise LookupError("No tally report CSV output found")
    return tally_output


def compare_votes(expected: VoteCounts, actual: VoteCounts) -> list[str]:
    """
    Compare expected and actual vote counts.

    Returns:
        Mismatch messages, empty when the counts agree
    """
    mismatches = []

    for contest_id, options in expected.items():
        for option_id, expected_count in options.items():
            actual_count = actual.get(contest_id, {}).get(option_id, 0)
            if actual_count != expected_count:
                mismatches.append(
                    f"Contest {contest_id}, Candidate {option_id}: expected {expected_count} "
                    f"based on marked ballots, got {actual_count} from tally CSV"
                )

    # A selection is expected if any contest expects a positive count for it.
    expected_selections = {
        option_id
        for options in expected.values()
        for option_id, count in options.items()
        if count
    }
    for contest_id, selections in actual.items():
        for selection_id, actual_count in selections.items():
            if actual_count > 0 and selection_id not in expected_selections:
                mismatches.append(f"Unexpected votes in CSV for {contest_id}/{selection_id}: {actual_count}")

    return mismatches


def _total(counts: VoteCounts) -> int:
    return sum(count for options in counts.values() for count in options.values())


def validate_tally_results(
    collection: ArtifactCollection,
    tally_csv_path: Optional[str] = None,
) -> ValidationResult:
    """
    Reconcile the exported tally report with what was voted.

    The result is also stored on the tally CSV output of the collection.

    Args:
        collection: Artifacts recorded during the run
        tally_csv_path: Read the CSV from here instead of the recorded path

    Returns:
        ValidationResult

    Raises:
        LookupError: If the collection has no tally report CSV output
    """
    tally_output = find_tally_csv_output(collection)
    expected = build_expected_votes(collection)

    csv_path = Path(tally_csv_path or tally_output.path)
    actual = parse_tally_csv(csv_path.read_text(encoding="utf-8"))

    total_expected = _total(expected)
    logger.debug(
        f"Expected votes: {total_expected}, "
        f"actual votes: {sum(c for options in actual.values() for c in options.values() if c > 0)}"
    )

    mismatches = compare_votes(expected, actual)
    if mismatches:
        result = ValidationResult(is_valid=False, message=f"Tally mismatch: {'; '.join(mismatches)}")
        logger.warning(result.message)
    else:
        result = ValidationResult(
            is_valid=True,
            message=f"Tally validated: {total_expected} vote(s) match CSV exactly",
        )
        logger.info(result.message)

    tally_output.validation_result = result
    return result


def revalidate_tally_results(output_dir: str) -> ValidationResult:
    """Re-run reconciliation for a finished run from its collection.json."""
    collection = load_collection(str(Path(output_dir) / "collection.json"))
    return validate_tally_results(collection)
