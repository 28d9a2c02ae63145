"""External services: npm registry, package-manager CLIs and depcheck."""
