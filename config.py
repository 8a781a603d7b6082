"""
Configuration module for Ballot QA.

Centralizes all settings and environment variables for easy configuration.

Usage:
    from config import config

    print(config.write_in_name)
    print(config.output_dir)
"""

import os
from dataclasses import dataclass


@dataclass
class Config:
    """
    Application configuration loaded from environment variables.

    All settings can be overridden via environment variables.
    """

    # Output Settings
    output_dir: str = "qa-output"

    # Vote Generation Settings
    write_in_name: str = "Testy McTester"

    # Marking Settings
    mark_offset_mm_x: float = 0.0
    mark_offset_mm_y: float = 0.0

    # Proof Ballot Settings
    proof_label_width: float = 120.0  # points

    # Logging Settings
    log_level: str = "INFO"

    def __post_init__(self):
        """Load configuration from environment variables."""
        # Output
        self.output_dir = os.environ.get("OUTPUT_DIR", "qa-output")

        # Vote generation
        self.write_in_name = os.environ.get("WRITE_IN_NAME", "Testy McTester")

        # Marking
        self.mark_offset_mm_x = float(os.environ.get("MARK_OFFSET_MM_X", "0"))
        self.mark_offset_mm_y = float(os.environ.get("MARK_OFFSET_MM_Y", "0"))

        # Proof ballots
        self.proof_label_width = float(os.environ.get("PROOF_LABEL_WIDTH", "120"))

        # Logging
        self.log_level = os.environ.get("LOG_LEVEL", "INFO")

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of issues.

        Returns:
            List of configuration issues (empty if valid)
        """
        issues = []

        if not self.write_in_name.strip():
            issues.append("WRITE_IN_NAME must not be empty")

        for name, offset in (("MARK_OFFSET_MM_X", self.mark_offset_mm_x),
                             ("MARK_OFFSET_MM_Y", self.mark_offset_mm_y)):
            if abs(offset) > 5:
                issues.append(f"{name} should be within +/-5mm, got {offset}")

        if self.proof_label_width < 20:
            issues.append(f"PROOF_LABEL_WIDTH must be at least 20 points, got {self.proof_label_width}")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            issues.append(f"LOG_LEVEL must be a standard logging level, got {self.log_level}")

        return issues

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return {
            "output_dir": self.output_dir,
            "write_in_name": self.write_in_name,
            "mark_offset_mm_x": self.mark_offset_mm_x,
            "mark_offset_mm_y": self.mark_offset_mm_y,
            "proof_label_width": self.proof_label_width,
            "log_level": self.log_level,
        }


# Global configuration instance
config = Config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config


def reload_config() -> Config:
    """Reload configuration from environment variables."""
    global config
    config = Config()
    return config
