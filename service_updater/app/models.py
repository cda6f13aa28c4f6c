"""
Data models for the Updater service.
"""

from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, StrictInt, model_validator


class UpdateApiRetcode(IntEnum):
    """Result codes carried in the response envelope."""
    UNKNOWN = -1
    SUCC = 0
    NO_DATA = 1


class FreshnessDecision(str, Enum):
    """Outcome of the freshness policy for one request."""
    FRESH = "fresh"
    CONFIRMED_STALE = "confirmed_stale"
    MISS = "miss"


class UpdateContent(BaseModel):
    """Version plus optional payload and signature.

    ``c`` and ``s`` travel together: a record carrying only one of them is
    rejected on construction.
    """

    v: StrictInt
    c: Optional[str] = None
    s: Optional[str] = None

    @model_validator(mode="after")
    def _payload_and_signature_together(self) -> "UpdateContent":
        if (self.c is None) != (self.s is None):
            raise ValueError("payload and signature must be both present or both absent")
        return self

    @property
    def is_complete(self) -> bool:
        return self.c is not None and self.s is not None


class VersionData(BaseModel):
    """Envelope data for the version endpoint."""
    v: int


class PathData(BaseModel):
    """Envelope data for unknown routes."""
    pathname: str


class UpdateApiResponse(BaseModel):
    """Response envelope returned for every updater route."""

    code: UpdateApiRetcode = UpdateApiRetcode.SUCC
    msg: str = "OK"
    data: Optional[Union[VersionData, UpdateContent, PathData]] = None

    @classmethod
    def success(cls, data: Union[VersionData, UpdateContent]) -> "UpdateApiResponse":
        return cls(data=data)

    @classmethod
    def no_data(cls) -> "UpdateApiResponse":
        return cls(code=UpdateApiRetcode.NO_DATA, msg="No data")

    @classmethod
    def failure(cls, message: str, data: Optional[PathData] = None) -> "UpdateApiResponse":
        return cls(code=UpdateApiRetcode.UNKNOWN, msg=message, data=data)

    @classmethod
    def not_found(cls, pathname: str) -> "UpdateApiResponse":
        return cls.failure("API Not found", PathData(pathname=pathname))

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for the wire, omitting absent fields."""
        return self.model_dump(mode="json", exclude_none=True)
