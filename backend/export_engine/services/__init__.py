"""
Application Services

Detection turns a rendered view into typed records; export turns the
selected records into files.
"""

from . import snapshot, detection, export, session

__all__ = ["snapshot", "detection", "export", "session"]
