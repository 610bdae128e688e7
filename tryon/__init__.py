"""Virtual try-on API: image staging and IDM-VTON orchestration."""

__version__ = "1.0.0"
