"""featurescope data: artifact sources, the index store, and detail loading.

Usage:
    from featurescope.data import FeatureDetailLoader, FeatureIndexStore, FileSystemSource

    source = FileSystemSource(data_dir="data")
    store = FeatureIndexStore(source)
    detail = FeatureDetailLoader(source).load_detail(42)
"""

from featurescope.data.builder import BuildReport, IndexBuilder
from featurescope.data.detail import FeatureDetailLoader
from featurescope.data.sources import ArtifactSource, FileSystemSource, InMemorySource
from featurescope.data.store import FeatureIndexStore

__all__ = [
    "ArtifactSource",
    "BuildReport",
    "FeatureDetailLoader",
    "FeatureIndexStore",
    "FileSystemSource",
    "InMemorySource",
    "IndexBuilder",
]
