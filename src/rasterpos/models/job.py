"""Print job models."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rasterpos.raster.bitmap import Bitmap


class JobKind(StrEnum):
    """What a job asks the printer to do."""

    RASTER = "raster"
    RAW = "raw"
    CASH_DRAWER = "cash_drawer"


class JobStatus(StrEnum):
    """Status of a print job."""

    PENDING = "pending"
    PRINTING = "printing"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"


class PrintJob(BaseModel):
    """A print job in the queue.

    Raster jobs carry a bitmap the job owns exclusively; raw jobs carry bytes
    passed to the printer untouched.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: UUID = Field(default_factory=uuid4)
    printer_name: str
    kind: JobKind = JobKind.RASTER
    bitmap: Bitmap | None = None
    data: bytes | None = None
    status: JobStatus = JobStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.now)
    error_message: str | None = None

    @model_validator(mode="after")
    def _check_payload(self) -> "PrintJob":
        if self.kind == JobKind.RASTER and self.bitmap is None:
            raise ValueError("Raster jobs need a bitmap")
        if self.kind == JobKind.RAW and not self.data:
            raise ValueError("Raw jobs need data")
        return self

    def is_expired(self, timeout_seconds: int) -> bool:
        """Check if the job has expired based on timeout."""
        elapsed = (datetime.now() - self.created_at).total_seconds()
        return elapsed > timeout_seconds
