#!/usr/bin/env python3
"""
Setup script for Ballot QA.

Install with:
    pip install -e .

With development tools:
    pip install -e ".[dev]"
"""

from setuptools import setup
from pathlib import Path

# Read version
version_file = Path(__file__).parent / "version.py"
version_dict = {}
exec(version_file.read_text(), version_dict)
__version__ = version_dict.get("__version__", "0.3.0")

# Read README
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""

setup(
    name="ballot-qa",
    version=__version__,
    author="Ballot QA Contributors",
    author_email="",
    description="Test vote generation, ballot marking, proof ballots and tally reconciliation for election QA",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    py_modules=[
        "artifacts",
        "ballot_marker",
        "cli",
        "config",
        "election_loader",
        "election_types",
        "logging_config",
        "mark_overlay",
        "pdf_utils",
        "proof_ballot",
        "tally_validation",
        "version",
        "vote_generator",
    ],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Testing",
    ],
    python_requires=">=3.11",
    install_requires=[
        "reportlab>=4.0.0",
        "pypdf>=4.0.0",
        "pydantic>=2.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ballot-qa=cli:main",
        ],
    },
    zip_safe=False,
    keywords="election ballot qa testing tally",
)
