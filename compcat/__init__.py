"""compcat: compaction catalog schema, migrations and skipped-compaction records."""

__version__ = "0.1.0"
