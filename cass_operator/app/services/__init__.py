"""
Services Module

Key Submodules:
- synthesis: Kubernetes objects for CassandraDatacenter resources

Usage:
    from app.services.synthesis import synthesize_datacenter, ProgressLabelTransitioner
"""

from .synthesis import (
    synthesize_datacenter,
    DesiredResources,
    ProgressLabelTransitioner,
)

__all__ = [
    "synthesize_datacenter",
    "DesiredResources",
    "ProgressLabelTransitioner",
]
