"""
Install Layer.

Archive primitives, permission handling and the artifact processor that
turns downloaded engine releases into installed binaries.
"""

from .artifact_processor import ArtifactProcessor
from .locks import InstallLocks

__all__ = ["ArtifactProcessor", "InstallLocks"]
