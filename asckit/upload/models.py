"""Upload data models.

Field aliases follow the App Store Connect JSON attribute names so server
payloads can be validated directly.
"""

from pydantic import BaseModel, ConfigDict, Field

from ..types import ByteCount, HttpMethod, ResourceId

DELIVERY_COMPLETE = "COMPLETE"
DELIVERY_FAILED = "FAILED"


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class HttpHeader(_ApiModel):
    """One request header. Names may repeat and every entry must be sent."""

    name: str = Field(min_length=1)
    value: str


class UploadOperation(_ApiModel):
    """Instruction to send bytes ``[offset, offset + length)`` of a file."""

    method: HttpMethod
    url: str = Field(min_length=1)
    request_headers: list[HttpHeader] = Field(
        default_factory=list, alias="requestHeaders"
    )
    offset: ByteCount
    length: ByteCount

    @property
    def end(self) -> int:
        """Exclusive end byte."""
        return self.offset + self.length

    def header_items(self) -> list[tuple[str, str]]:
        """Headers as ordered pairs, duplicates preserved."""
        return [(h.name, h.value) for h in self.request_headers]


class DeliveryIssue(_ApiModel):
    code: str = ""
    description: str = ""

    def render(self) -> str:
        if self.code and self.description:
            return f"{self.code}: {self.description}"
        return self.description or self.code


class DeliveryState(_ApiModel):
    """Server-side processing state of an uploaded asset."""

    state: str | None = None
    errors: list[DeliveryIssue] = Field(default_factory=list)
    warnings: list[DeliveryIssue] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return (self.state or "").upper() == DELIVERY_COMPLETE

    @property
    def is_failed(self) -> bool:
        return (self.state or "").upper() == DELIVERY_FAILED

    def reasons(self) -> list[str]:
        """Human-readable error reasons reported by the server."""
        return [r for r in (issue.render() for issue in self.errors) if r]


class AssetReservation(_ApiModel):
    """Placeholder created by the server before any bytes are sent."""

    asset_id: ResourceId
    upload_operations: list[UploadOperation] = Field(default_factory=list)
    delivery_state: DeliveryState | None = None


class AssetUploadResult(BaseModel):
    """Outcome of one successful asset upload."""

    file_name: str
    file_path: str
    asset_id: ResourceId
    state: str
