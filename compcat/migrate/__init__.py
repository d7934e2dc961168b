"""Migration runner for the compaction catalog."""

from compcat.migrate.runner import MIGRATIONS_DIR, MigrationRunner, to_sync_url

__all__ = ["MIGRATIONS_DIR", "MigrationRunner", "to_sync_url"]
