#!/usr/bin/env python3
"""
Command-line interface for the ballot QA toolkit.

Usage:
    python cli.py --help
    python cli.py votes <election> --ballot-style <id> [--pattern ...]
    python cli.py proof <election> --ballot-style <id> [options]
    python cli.py mark <election> --ballot-style <id> --pattern <pattern> [options]
    python cli.py validate-tally <output_dir>
    python cli.py --version
"""

import argparse
import json
import sys
from pathlib import Path

from config import config
from election_loader import ElectionPackage, load_election
from election_types import votes_to_json
from logging_config import get_logger, run_log_path, setup_logging
from version import __version__
from vote_generator import BallotPattern, generate_vote_patterns

logger = get_logger(__name__)

PATTERN_CHOICES = [p.value for p in BallotPattern]


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ballot-qa",
        description="""
Ballot QA - generate test votes, marked ballots and proof ballots, and
reconcile exported tally reports against what was voted.

Examples:
  %(prog)s votes election.zip --ballot-style 1_en              # All patterns as JSON
  %(prog)s proof election.zip --ballot-style 1_en -o proof.pdf # Annotated proof ballot
  %(prog)s mark election.zip --ballot-style 1_en --pattern overvote
  %(prog)s validate-tally qa-output/run-1                      # Recheck a finished run
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase verbosity (-v for DEBUG)"
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this file"
    )
    parser.add_argument(
        "--save-log",
        action="store_true",
        help="Also write logs to a timestamped file in the output directory (OUTPUT_DIR)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Votes command
    votes_parser = subparsers.add_parser(
        "votes",
        help="Print generated pattern votes",
        description="Generate the votes for each test pattern on a ballot style."
    )
    _add_election_args(votes_parser)
    votes_parser.add_argument(
        "--pattern", "-p",
        action="append",
        choices=PATTERN_CHOICES,
        help="Pattern to generate (repeatable, default: all)"
    )

    # Proof command
    proof_parser = subparsers.add_parser(
        "proof",
        help="Generate a proof ballot",
        description="Annotate every bubble of a ballot PDF with its option and contest."
    )
    _add_election_args(proof_parser)
    _add_base_pdf_args(proof_parser)
    proof_parser.add_argument(
        "--output", "-o",
        help="Output PDF path (default: <output-dir>/proof-<style>.pdf)"
    )

    # Mark command
    mark_parser = subparsers.add_parser(
        "mark",
        help="Generate marked ballot sheets",
        description="Mark a pattern's votes on a ballot PDF and split it into sheets."
    )
    _add_election_args(mark_parser)
    _add_base_pdf_args(mark_parser)
    mark_parser.add_argument(
        "--pattern", "-p",
        required=True,
        choices=PATTERN_CHOICES,
        help="Pattern to mark"
    )
    mark_parser.add_argument(
        "--output-dir", "-o",
        default=config.output_dir,
        help=f"Directory for sheet PDFs (default: {config.output_dir})"
    )

    # Validate-tally command
    validate_parser = subparsers.add_parser(
        "validate-tally",
        help="Reconcile a tally report",
        description="Re-run tally reconciliation using a run's collection.json."
    )
    validate_parser.add_argument(
        "output_dir",
        help="Run output directory containing collection.json"
    )

    return parser


def _add_election_args(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "election",
        help="election.json or election package ZIP"
    )
    subparser.add_argument(
        "--ballot-style", "-b",
        required=True,
        help="Ballot style id"
    )


def _add_base_pdf_args(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--base-pdf",
        help="Ballot PDF to draw on (default: the package's ballot for the style)"
    )
    subparser.add_argument(
        "--ballot-mode",
        default="official",
        choices=["official", "test"],
        help="Ballot mode to take from the package (default: official)"
    )


def _load_base_pdf(package: ElectionPackage, args: argparse.Namespace) -> bytes:
    if args.base_pdf:
        return Path(args.base_pdf).read_bytes()

    ballot = package.find_ballot(args.ballot_style, ballot_mode=args.ballot_mode)
    if ballot is None:
        raise LookupError(
            f"No {args.ballot_mode} ballot PDF for style {args.ballot_style} in package; use --base-pdf"
        )
    return ballot.pdf_data


def cmd_votes(args: argparse.Namespace) -> int:
    election = load_election(args.election).election_definition.election
    patterns = [BallotPattern(p) for p in args.pattern] if args.pattern else list(BallotPattern)

    result = generate_vote_patterns(election, args.ballot_style, patterns)
    output = {
        pattern.value: votes_to_json(pattern_votes.to_votes_dict())
        for pattern, pattern_votes in result.items()
    }
    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


def cmd_proof(args: argparse.Namespace) -> int:
    from proof_ballot import generate_proof_ballot

    package = load_election(args.election)
    base_pdf = _load_base_pdf(package, args)
    pdf_bytes = generate_proof_ballot(package.election_definition.election, args.ballot_style, base_pdf)

    output = Path(args.output or Path(config.output_dir) / f"proof-{args.ballot_style}.pdf")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(pdf_bytes)
    print(f"Proof ballot written to {output}")
    return 0


def cmd_mark(args: argparse.Namespace) -> int:
    from ballot_marker import (
        generate_marked_ballot_for_pattern,
        save_marked_sheets,
        split_marked_ballot_into_sheets,
    )

    package = load_election(args.election)
    election = package.election_definition.election
    base_pdf = _load_base_pdf(package, args)
    pattern = BallotPattern(args.pattern)

    marked = generate_marked_ballot_for_pattern(election, args.ballot_style, pattern, base_pdf)
    if marked is None:
        print(f"Pattern {pattern.value} is not applicable to ballot style {args.ballot_style}")
        return 0

    sheets = split_marked_ballot_into_sheets(election, marked)
    for path in save_marked_sheets(sheets, args.output_dir):
        print(path)
    return 0


def cmd_validate_tally(args: argparse.Namespace) -> int:
    from tally_validation import revalidate_tally_results

    result = revalidate_tally_results(args.output_dir)
    print(result.message)
    return 0 if result.is_valid else 1


COMMANDS = {
    "votes": cmd_votes,
    "proof": cmd_proof,
    "mark": cmd_mark,
    "validate-tally": cmd_validate_tally,
}


def main():
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    log_file = args.log_file
    if log_file is None and args.save_log:
        log_file = run_log_path(config.output_dir)
    log_path = setup_logging(level="DEBUG" if args.verbose else config.log_level, log_file=log_file)
    if log_path:
        logger.info(f"Writing log to {log_path}")

    for issue in config.validate():
        logger.warning(f"Config: {issue}")

    try:
        sys.exit(COMMANDS[args.command](args))
    except (FileNotFoundError, LookupError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
