"""
CoachShare client core: request orchestration and session lifecycle.
"""

__version__ = "0.1.0"
