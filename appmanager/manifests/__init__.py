"""Kubernetes manifest rendering, parsing and ingress file editing."""
from appmanager.manifests.generator import ManifestGenerator
from appmanager.manifests.ingress import IngressError, IngressFile
from appmanager.manifests.reader import ManifestError, parse_manifest, read_manifest

__all__ = [
    'IngressError',
    'IngressFile',
    'ManifestError',
    'ManifestGenerator',
    'parse_manifest',
    'read_manifest',
]
