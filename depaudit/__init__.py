"""dep-audit: dependency auditor for npm, yarn and pnpm projects."""

__version__ = "2.0.0"
