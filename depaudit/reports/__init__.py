"""Reports built on top of the reconciled dependency graph."""
