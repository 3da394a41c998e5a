"""PrivacyGrade: live tracker and fingerprinting detection with letter grades."""

__version__ = "0.1.0"
