#!/usr/bin/env python3
"""
Tests for tally_validation.py and the artifacts.py collection model.

Run with: python tests/test_tally_validation.py
"""

import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from artifacts import (
    ArtifactCollection,
    FileOutput,
    ManualTallyOutput,
    ReportOutput,
    ScanResultOutput,
    WorkflowStep,
    load_collection,
    output_from_dict,
    save_collection,
)
from election_types import Candidate, make_write_in_candidate
from tally_validation import (
    build_expected_votes,
    compare_votes,
    find_tally_csv_output,
    parse_csv_line,
    parse_tally_csv,
    revalidate_tally_results,
    validate_tally_results,
)

CSV_HEADER = "Test Election Tally Report\nContest,Contest ID,Selection,Selection ID,Total Votes\n"

ALICE = Candidate(id="alice", name="Alice Adams")
BOB = Candidate(id="bob", name="Bob Brown")


def scan(votes, accepted=True, pattern="valid", sheet_number=1):
    return ScanResultOutput(
        label=f"Scan {pattern}",
        accepted=accepted,
        ballot_style_id="1_en",
        mark_pattern=pattern,
        votes=votes,
        sheet_number=sheet_number,
    )


class TestParseCsvLine(unittest.TestCase):
    """Tests for RFC 4180 line parsing."""

    def test_quoted_comma(self):
        self.assertEqual(
            parse_csv_line('Article 2,id1,"Yes, of course",id2,2'),
            ["Article 2", "id1", "Yes, of course", "id2", "2"],
        )

    def test_doubled_quotes(self):
        self.assertEqual(parse_csv_line('"Say ""Hi""","World"'), ['Say "Hi"', "World"])

    def test_trimming(self):
        self.assertEqual(parse_csv_line(' a ,"  b  ",c '), ["a", "  b  ", "c"])

    def test_empty_fields(self):
        self.assertEqual(parse_csv_line("a,,b,"), ["a", "", "b", ""])


class TestParseTallyCsv(unittest.TestCase):
    """Tests for reading tally report CSV content."""

    def test_skips_title_header_and_accounting_rows(self):
        content = CSV_HEADER + (
            "Mayor,mayor,Alice Adams,alice,3\n"
            "Mayor,mayor,Overvotes,overvotes,1\n"
            "Mayor,mayor,Undervotes,undervotes,2\n"
            "\n"
            "Mayor,mayor,Bob Brown,bob,n/a\n"
            "short,row\n"
            '"Prop 1, Parks",prop1,Yes,prop1-yes,4\n'
        )
        self.assertEqual(parse_tally_csv(content), {"mayor": {"alice": 3}, "prop1": {"prop1-yes": 4}})

    def test_sums_repeated_rows(self):
        content = CSV_HEADER + "Mayor,mayor,Alice,alice,2\nMayor,mayor,Alice,alice,1\n"
        self.assertEqual(parse_tally_csv(content), {"mayor": {"alice": 3}})

    def test_crlf_line_endings(self):
        content = CSV_HEADER.replace("\n", "\r\n") + "Mayor,mayor,Alice,alice,2\r\n"
        self.assertEqual(parse_tally_csv(content), {"mayor": {"alice": 2}})

    def test_non_plain_integer_counts_skipped(self):
        content = CSV_HEADER + (
            "Mayor,mayor,Alice,alice,1_000\n"
            "Mayor,mayor,Bob,bob,+3\n"
            "Mayor,mayor,Write-In,write-in,2.0\n"
            "Mayor,mayor,Alice,alice,-1\n"
            "Prop 1,prop1,Yes,prop1-yes,\n"
        )
        self.assertEqual(parse_tally_csv(content), {"mayor": {"alice": -1}, "prop1": {"prop1-yes": 0}})


class TestExpectedVotes(unittest.TestCase):
    """Tests for building expected votes from a collection."""

    def collection(self, *outputs):
        return ArtifactCollection(run_id="run-1", steps=[WorkflowStep(id="s1", name="Scan", outputs=list(outputs))])

    def test_counts_accepted_sheets(self):
        collection = self.collection(
            scan({"mayor": [ALICE]}),
            scan({"mayor": [ALICE], "prop1": ["prop1-yes"]}),
            scan({"mayor": [BOB]}, accepted=False),
        )
        self.assertEqual(build_expected_votes(collection), {"mayor": {"alice": 2}, "prop1": {"prop1-yes": 1}})

    def test_write_ins_share_one_bucket(self):
        collection = self.collection(
            scan({"mayor": [make_write_in_candidate(0, "Jane")]}, pattern="marked-write-in"),
            scan({"council": [make_write_in_candidate(1, "Joe")]}, pattern="valid"),
        )
        self.assertEqual(build_expected_votes(collection), {"mayor": {"write-in": 1}, "council": {"write-in": 1}})

    def test_unmarked_write_in_excluded(self):
        collection = self.collection(
            scan({"mayor": [make_write_in_candidate(0, "Jane")]}, pattern="unmarked-write-in"),
        )
        self.assertEqual(build_expected_votes(collection), {})

    def test_manual_tallies_added(self):
        collection = self.collection(
            scan({"mayor": [ALICE]}),
            ManualTallyOutput(label="Manual", tallies={"mayor": {"alice": 2, "bob": 1}}),
        )
        self.assertEqual(build_expected_votes(collection), {"mayor": {"alice": 3, "bob": 1}})


class TestCompareVotes(unittest.TestCase):
    """Tests for comparing expected and actual counts."""

    def test_match(self):
        self.assertEqual(compare_votes({"mayor": {"alice": 3}}, {"mayor": {"alice": 3}}), [])

    def test_count_mismatch(self):
        mismatches = compare_votes({"mayor": {"alice": 3}}, {"mayor": {"alice": 2}})
        self.assertEqual(mismatches, [
            "Contest mayor, Candidate alice: expected 3 based on marked ballots, got 2 from tally CSV",
        ])

    def test_missing_from_csv(self):
        mismatches = compare_votes({"mayor": {"alice": 1}}, {})
        self.assertEqual(len(mismatches), 1)
        self.assertIn("got 0 from tally CSV", mismatches[0])

    def test_unexpected_votes(self):
        mismatches = compare_votes({"mayor": {"alice": 1}}, {"mayor": {"alice": 1, "bob": 2, "carol": 0}})
        self.assertEqual(mismatches, ["Unexpected votes in CSV for mayor/bob: 2"])


class TestValidateTallyResults(unittest.TestCase):
    """End-to-end reconciliation against a CSV on disk."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.dir = Path(self.temp_dir.name)
        self.csv_path = self.dir / "tally-report-2026.csv"

    def tearDown(self):
        self.temp_dir.cleanup()

    def collection(self, csv_rows, *outputs):
        self.csv_path.write_text(CSV_HEADER + csv_rows, encoding="utf-8")
        return ArtifactCollection(run_id="run-1", steps=[
            WorkflowStep(id="scan", name="Scan ballots", outputs=list(outputs)),
            WorkflowStep(id="tally", name="Export tally", outputs=[
                ReportOutput(label="Tally PDF", path=str(self.dir / "tally-report-2026.pdf")),
                ReportOutput(label="Tally CSV", path=str(self.csv_path)),
            ]),
        ])

    def test_valid_tally(self):
        collection = self.collection(
            "Mayor,mayor,Alice,alice,3\nMayor,mayor,Bob,bob,0\n",
            scan({"mayor": [ALICE]}), scan({"mayor": [ALICE]}), scan({"mayor": [ALICE]}),
        )
        result = validate_tally_results(collection)

        self.assertTrue(result.is_valid)
        self.assertEqual(result.message, "Tally validated: 3 vote(s) match CSV exactly")
        self.assertIs(find_tally_csv_output(collection).validation_result, result)

    def test_mismatch(self):
        collection = self.collection(
            "Mayor,mayor,Alice,alice,2\nMayor,mayor,Bob,bob,1\n",
            scan({"mayor": [ALICE]}), scan({"mayor": [ALICE]}), scan({"mayor": [ALICE]}),
        )
        result = validate_tally_results(collection)

        self.assertFalse(result.is_valid)
        self.assertTrue(result.message.startswith("Tally mismatch: "))
        self.assertIn("Contest mayor, Candidate alice: expected 3", result.message)
        self.assertIn("; Unexpected votes in CSV for mayor/bob: 1", result.message)

    def test_write_in_bucket_matches_csv(self):
        collection = self.collection(
            "Mayor,mayor,Write-In,write-in,1\n",
            scan({"mayor": [make_write_in_candidate(0, "Jane")]}, pattern="marked-write-in"),
            scan({"mayor": [make_write_in_candidate(0, "Jane")]}, pattern="unmarked-write-in"),
        )
        self.assertTrue(validate_tally_results(collection).is_valid)

    def test_explicit_csv_path(self):
        collection = self.collection("Mayor,mayor,Alice,alice,5\n", scan({"mayor": [ALICE]}))
        other = self.dir / "other.csv"
        other.write_text(CSV_HEADER + "Mayor,mayor,Alice,alice,1\n", encoding="utf-8")

        self.assertTrue(validate_tally_results(collection, str(other)).is_valid)

    def test_missing_csv_output(self):
        collection = ArtifactCollection(run_id="run-1", steps=[
            WorkflowStep(id="scan", name="Scan", outputs=[scan({"mayor": [ALICE]})]),
        ])
        with self.assertRaises(LookupError) as ctx:
            validate_tally_results(collection)
        self.assertEqual(str(ctx.exception), "No tally report CSV output found")

    def test_revalidate_from_collection_json(self):
        collection = self.collection("Mayor,mayor,Alice,alice,1\n", scan({"mayor": [ALICE]}))
        save_collection(collection, str(self.dir / "collection.json"))

        result = revalidate_tally_results(str(self.dir))
        self.assertTrue(result.is_valid)

    def test_revalidate_missing_collection(self):
        with self.assertRaises(FileNotFoundError):
            revalidate_tally_results(str(self.dir / "missing"))


class TestArtifactCollection(unittest.TestCase):
    """Tests for collection.json serialization."""

    def test_save_and_load(self):
        collection = ArtifactCollection(run_id="run-7", steps=[
            WorkflowStep(id="scan", name="Scan", outputs=[
                scan({"mayor": [make_write_in_candidate(0, "Jane")], "prop1": ["prop1-no"]}, sheet_number=2),
                ManualTallyOutput(label="Manual", tallies={"mayor": {"alice": 1}}),
                FileOutput(type="ballot", label="Ballot", path="ballot.pdf"),
            ]),
        ])
        with tempfile.TemporaryDirectory() as temp_dir:
            path = str(Path(temp_dir) / "collection.json")
            save_collection(collection, path)
            loaded = load_collection(path)

        self.assertEqual(loaded.run_id, "run-7")
        outputs = loaded.steps[0].outputs
        self.assertEqual(outputs[0].sheet_number, 2)
        self.assertEqual(outputs[0].votes["mayor"][0].id, "write-in-0")
        self.assertEqual(outputs[0].votes["prop1"], ["prop1-no"])
        self.assertEqual(outputs[1].tallies, {"mayor": {"alice": 1}})
        self.assertEqual(outputs[2].type, "ballot")

    def test_unknown_output_type(self):
        with self.assertRaises(ValueError):
            output_from_dict({"type": "video", "label": "x"})


if __name__ == "__main__":
    unittest.main()
