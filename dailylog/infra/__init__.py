"""
Infrastructure for Daily Log.

- Encrypted backup export/import
"""

from dailylog.infra.backup import BackupEnvelope, BackupPipeline, ImportResult

__all__ = ["BackupEnvelope", "BackupPipeline", "ImportResult"]
