from .job_snapshot_repository import JobSnapshotRepository, PostgresJobSnapshotRepository

__all__ = ["JobSnapshotRepository", "PostgresJobSnapshotRepository"]
