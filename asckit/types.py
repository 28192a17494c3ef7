"""Common annotated types for field validation.

These types provide consistent validation patterns across the SDK.
"""

from typing import Annotated

from pydantic import Field

# Pattern for HTTP verbs returned in upload operations (GET, PUT, POST, ...)
HTTP_METHOD_PATTERN = r"^[A-Z]+$"


# Resource identifier - opaque, server-assigned, must be non-empty
ResourceId = Annotated[str, Field(min_length=1)]

# HTTP method - uppercase verb
HttpMethod = Annotated[str, Field(min_length=1, pattern=HTTP_METHOD_PATTERN)]

# Byte offset or length inside an upload file
ByteCount = Annotated[int, Field(ge=0)]
