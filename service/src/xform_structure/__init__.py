"""Export naming and structural comparison for XForm definitions."""

__version__ = "0.1.0"
