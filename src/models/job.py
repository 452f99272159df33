"""Deferred job and pipeline state models."""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class Job(BaseModel):
    """A unit of work delivered by the job queue."""
    id: str
    job_name: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None


class PipelineState(str, Enum):
    """Command pipeline states, in execution order."""
    RESOLVING_SOURCE = "RESOLVING_SOURCE"
    UPLOADING = "UPLOADING"
    TRANSFORMING = "TRANSFORMING"
    PUBLISHING = "PUBLISHING"
    PROMOTING = "PROMOTING"
    ANNOTATING = "ANNOTATING"
    CLEANING_UP = "CLEANING_UP"
    DONE = "DONE"
    FAILED = "FAILED"


class PipelineResult(BaseModel):
    """Terminal outcome of one pipeline run."""
    model_config = {"arbitrary_types_allowed": True}

    state: PipelineState
    failed_at: Optional[PipelineState] = None
    error: Optional[Exception] = None
    source_url: Optional[str] = None
    link: Optional[str] = None
