#!/usr/bin/env python3
"""
QA run artifact collection.

Contains: ValidationResult, ScanResultOutput, ManualTallyOutput,
ReportOutput, FileOutput, WorkflowStep, ArtifactCollection,
load_collection, save_collection.

The collection is what the browser and hardware workflows record while a QA
run executes (one scan-result output per scanned sheet, manual tallies
entered by hand, exported reports). It is stored as collection.json in the
run's output directory using the camelCase keys of that file.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from election_types import VotesDict, votes_from_json, votes_to_json
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    is_valid: bool
    message: str

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> Optional["ValidationResult"]:
        if not d:
            return None
        return cls(is_valid=bool(d.get("isValid")), message=d.get("message", ""))

    def to_dict(self) -> dict:
        return {"isValid": self.is_valid, "message": self.message}


@dataclass
class ScanResultOutput:
    """What the scanner recorded for one fed sheet."""
    label: str
    accepted: bool
    ballot_style_id: str
    mark_pattern: str
    votes: VotesDict = field(default_factory=dict)
    sheet_number: int = 1
    ballot_mode: str = "test"
    expected: bool = True
    rejected_reason: Optional[str] = None
    screenshot_path: str = ""
    description: Optional[str] = None
    validation_result: Optional[ValidationResult] = None
    type: str = field(default="scan-result", init=False)


@dataclass
class ManualTallyOutput:
    """Vote counts entered by hand: contest id -> option id -> count."""
    label: str
    tallies: dict[str, dict[str, int]] = field(default_factory=dict)
    description: Optional[str] = None
    validation_result: Optional[ValidationResult] = None
    type: str = field(default="manual-tally", init=False)


@dataclass
class ReportOutput:
    label: str
    path: str
    description: Optional[str] = None
    validation_result: Optional[ValidationResult] = None
    type: str = field(default="report", init=False)

    @property
    def is_tally_csv(self) -> bool:
        return "tally-report" in self.path and self.path.endswith(".csv")


@dataclass
class FileOutput:
    """A ballot, election package, or printed report written to disk."""
    type: str  # 'ballot', 'election-package' or 'print'
    label: str
    path: str
    description: Optional[str] = None
    validation_result: Optional[ValidationResult] = None


StepOutput = Union[ScanResultOutput, ManualTallyOutput, ReportOutput, FileOutput]

FILE_OUTPUT_TYPES = ("ballot", "election-package", "print")


def output_from_dict(d: dict) -> StepOutput:
    """Parse a step output, dispatching on its ``type`` tag."""
    output_type = d.get("type")
    validation = ValidationResult.from_dict(d.get("validationResult"))

    if output_type == "scan-result":
        return ScanResultOutput(
            label=d.get("label", ""),
            accepted=bool(d.get("accepted")),
            ballot_style_id=d.get("ballotStyleId", ""),
            mark_pattern=d.get("markPattern", ""),
            votes=votes_from_json(d.get("votes") or {}),
            sheet_number=int(d.get("sheetNumber", 1)),
            ballot_mode=d.get("ballotMode", "test"),
            expected=bool(d.get("expected", True)),
            rejected_reason=d.get("rejectedReason"),
            screenshot_path=d.get("screenshotPath", ""),
            description=d.get("description"),
            validation_result=validation,
        )
    if output_type == "manual-tally":
        return ManualTallyOutput(
            label=d.get("label", ""),
            tallies={
                contest_id: {option_id: int(count) for option_id, count in options.items()}
                for contest_id, options in (d.get("tallies") or {}).items()
            },
            description=d.get("description"),
            validation_result=validation,
        )
    if output_type == "report":
        return ReportOutput(
            label=d.get("label", ""),
            path=d["path"],
            description=d.get("description"),
            validation_result=validation,
        )
    if output_type in FILE_OUTPUT_TYPES:
        return FileOutput(
            type=output_type,
            label=d.get("label", ""),
            path=d["path"],
            description=d.get("description"),
            validation_result=validation,
        )
    raise ValueError(f"Unexpected step output type: {output_type}")


def output_to_dict(output: StepOutput) -> dict:
    d = {"type": output.type, "label": output.label}
    if output.description is not None:
        d["description"] = output.description

    if isinstance(output, ScanResultOutput):
        d.update({
            "accepted": output.accepted,
            "expected": output.expected,
            "ballotStyleId": output.ballot_style_id,
            "ballotMode": output.ballot_mode,
            "markPattern": output.mark_pattern,
            "sheetNumber": output.sheet_number,
            "votes": votes_to_json(output.votes),
            "screenshotPath": output.screenshot_path,
        })
        if output.rejected_reason is not None:
            d["rejectedReason"] = output.rejected_reason
    elif isinstance(output, ManualTallyOutput):
        d["tallies"] = output.tallies
    else:
        d["path"] = output.path

    if output.validation_result is not None:
        d["validationResult"] = output.validation_result.to_dict()
    return d


@dataclass
class WorkflowStep:
    id: str
    name: str
    description: str = ""
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    outputs: list[StepOutput] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> "WorkflowStep":
        return cls(
            id=d.get("id", ""),
            name=d.get("name", ""),
            description=d.get("description", ""),
            start_time=d.get("startTime"),
            end_time=d.get("endTime"),
            outputs=[output_from_dict(o) for o in d.get("outputs", [])],
            errors=list(d.get("errors", [])),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "outputs": [output_to_dict(o) for o in self.outputs],
            "errors": self.errors,
        }


@dataclass
class ArtifactCollection:
    run_id: str
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())
    end_time: Optional[str] = None
    steps: list[WorkflowStep] = field(default_factory=list)

    def iter_outputs(self):
        for step in self.steps:
            yield from step.outputs

    @classmethod
    def from_dict(cls, d: dict) -> "ArtifactCollection":
        return cls(
            run_id=d.get("runId", ""),
            start_time=d.get("startTime", ""),
            end_time=d.get("endTime"),
            steps=[WorkflowStep.from_dict(s) for s in d.get("steps", [])],
        )

    def to_dict(self) -> dict:
        return {
            "runId": self.run_id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "steps": [s.to_dict() for s in self.steps],
        }


def load_collection(path: str) -> ArtifactCollection:
    """Load an artifact collection from collection.json."""
    collection_path = Path(path)
    if not collection_path.exists():
        raise FileNotFoundError(f"Collection not found: {path}")

    with open(collection_path, encoding="utf-8") as f:
        collection = ArtifactCollection.from_dict(json.load(f))
    logger.debug(f"Loaded collection {collection.run_id} with {len(collection.steps)} steps")
    return collection


def save_collection(collection: ArtifactCollection, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(collection.to_dict(), f, ensure_ascii=False, indent=2)
