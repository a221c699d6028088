"""Persistent stores used by the scanner."""

from .detection_cache import DetectionCache, Fingerprint, fingerprint_for

__all__ = ["DetectionCache", "Fingerprint", "fingerprint_for"]
