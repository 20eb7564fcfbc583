"""regsync - mirror local image bundles to remote container registries."""

__version__ = "0.1.0"
