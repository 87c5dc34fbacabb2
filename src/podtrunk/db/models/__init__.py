"""SQLAlchemy ORM models - import all to register with Base.metadata."""

from podtrunk.db.models.pod import PodRow, PodVersionRow
from podtrunk.db.models.submission_job import LogMessageRow, SubmissionJobRow

__all__ = [
    "PodRow",
    "PodVersionRow",
    "SubmissionJobRow",
    "LogMessageRow",
]
