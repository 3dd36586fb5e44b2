"""BootMedic: evidence-based Windows boot diagnosis and guarded repair."""

__version__ = "0.4.0"
