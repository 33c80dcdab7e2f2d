"""Bundled package manifests. Each module exposes `get_package(ctx)`."""
