"""Database models and bootstrap helpers."""

from .db_models import Base, ProcessingJobModel, ProfileModel, UsageCreditsModel

__all__ = [
    "Base",
    "ProcessingJobModel",
    "ProfileModel",
    "UsageCreditsModel",
]
