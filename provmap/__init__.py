"""provmap: provenance highlighting for compiler diagnostic reports."""

__version__ = "0.3.0"
