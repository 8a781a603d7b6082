"""Version information for Ballot QA."""

__version__ = "0.3.0"
