"""App Store Connect API client.

Thin async wrapper over ``httpx`` that turns responses into asckit errors
and exposes the asset endpoints the upload pipeline needs. Request signing
happens elsewhere; this client is handed a ready bearer token.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .config import AscConfig
from .deadline import Deadline
from .errors import (
    APIError,
    DeadlineExceededError,
    MissingAuthError,
    RetryableError,
    TransportError,
)
from .pagination import Page, paginate_all
from .ratelimit import (
    RATE_LIMIT_HEADER,
    RETRY_AFTER_HEADER,
    parse_rate_limit_header,
    parse_retry_after,
)
from .upload.checksum import Checksum
from .upload.executor import UploadExecutor
from .upload.models import AssetReservation, DeliveryState, UploadOperation

logger = logging.getLogger(__name__)

# Largest page size the list endpoints accept
MAX_PAGE_LIMIT = 200


class Resource(BaseModel):
    """JSON:API resource object."""

    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    relationships: dict[str, Any] | None = None


class AssetKind(BaseModel):
    """Describes one uploadable asset resource and the set that owns it."""

    model_config = ConfigDict(frozen=True)

    name: str
    resource_type: str
    set_resource_type: str
    set_relationship: str
    set_type_attribute: str
    sends_mime_type: bool = False
    # Prefix accepted on the command line but not part of the server's type
    stripped_type_prefix: str = ""

    def normalize_set_type(self, value: str) -> str:
        """Upper-case ``value`` and drop ``stripped_type_prefix``.

        Raises:
            ValueError: Value is blank
        """
        normalized = value.strip().upper()
        if self.stripped_type_prefix:
            normalized = normalized.removeprefix(self.stripped_type_prefix)
        if not normalized:
            raise ValueError(f"{self.set_type_attribute} is required")
        return normalized


APP_PREVIEW = AssetKind(
    name="previews",
    resource_type="appPreviews",
    set_resource_type="appPreviewSets",
    set_relationship="appPreviewSet",
    set_type_attribute="previewType",
    sends_mime_type=True,
    stripped_type_prefix="APP_",
)

APP_SCREENSHOT = AssetKind(
    name="screenshots",
    resource_type="appScreenshots",
    set_resource_type="appScreenshotSets",
    set_relationship="appScreenshotSet",
    set_type_attribute="screenshotDisplayType",
)

ASSET_KINDS: dict[str, AssetKind] = {k.name: k for k in (APP_PREVIEW, APP_SCREENSHOT)}

# Statuses that are transient when the server also sends Retry-After
_RETRY_AFTER_STATUSES = {502, 503, 504}


class AscApiClient:
    """
    HTTP client for App Store Connect.

    Example:
        config = AscConfig()
        async with AscApiClient(config) as client:
            target = client.asset_target(APP_PREVIEW, set_id)
            uploader = AssetUploader(target, client.upload_executor())
            await uploader.upload("preview.mov")
    """

    def __init__(
        self,
        config: AscConfig,
        *,
        http: httpx.AsyncClient | None = None,
        upload_http: httpx.AsyncClient | None = None,
    ):
        if not config.token:
            raise MissingAuthError(
                "missing authentication: ASC_TOKEN is not configured"
            )
        self._config = config
        self._api_url = str(config.api_url).rstrip("/")
        self._token = config.token
        self._http = http or httpx.AsyncClient(timeout=config.timeout)
        # Upload URLs are presigned and must not see the API token
        self._upload_http = upload_http or httpx.AsyncClient(timeout=config.timeout)

    async def close(self) -> None:
        """Close HTTP clients."""
        await self._http.aclose()
        await self._upload_http.aclose()

    async def __aenter__(self) -> AscApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def config(self) -> AscConfig:
        return self._config

    def _url(self, path_or_url: str) -> str:
        if path_or_url.startswith(("http://", "https://")):
            return path_or_url
        return f"{self._api_url}/{path_or_url.lstrip('/')}"

    async def request(
        self,
        method: str,
        path_or_url: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        deadline: Deadline | None = None,
    ) -> dict[str, Any]:
        """
        Make an authenticated API request and return the decoded body.

        Absolute URLs (such as pagination cursors) are used as-is.

        Args:
            method: HTTP method
            path_or_url: API path or absolute URL
            json: JSON request body
            params: Query parameters
            deadline: Bound for the request on top of the client timeout

        Raises:
            RetryableError: 429, or 502/503/504 with Retry-After
            APIError: Any other non-2xx status (status-specific subclass)
            DeadlineExceededError: The request timed out
            TransportError: Network failure or an undecodable success body
        """
        url = self._url(path_or_url)
        deadline = deadline or Deadline.never()
        try:
            response = await deadline.run(
                self._http.request(
                    method,
                    url,
                    headers={"Authorization": f"Bearer {self._token}"},
                    json=json,
                    params=params,
                ),
                f"{method} {url}",
            )
        except httpx.TimeoutException as e:
            raise DeadlineExceededError(f"{method} {url}: request timed out") from e
        except httpx.RequestError as e:
            raise TransportError(f"{method} {url}: {e}") from e

        logger.debug(
            "API request",
            extra={"method": method, "url": url, "status": response.status_code},
        )

        if response.is_success:
            if response.status_code == 204 or not response.content:
                return {}
            try:
                return response.json()
            except ValueError as e:
                raise TransportError(
                    f"{method} {url}: invalid JSON in HTTP "
                    f"{response.status_code} response"
                ) from e

        error = APIError.from_response(response)
        retry_after = parse_retry_after(response.headers.get(RETRY_AFTER_HEADER))
        if response.status_code == 429 or (
            response.status_code in _RETRY_AFTER_STATUSES and retry_after is not None
        ):
            raise RetryableError(
                str(error),
                retry_after=retry_after,
                rate_limit=parse_rate_limit_header(
                    response.headers.get(RATE_LIMIT_HEADER)
                ),
            ) from error
        raise error

    async def get_page(
        self, url: str, deadline: Deadline | None = None
    ) -> Page[Resource]:
        """Fetch one page of resources from a cursor URL."""
        return Page[Resource].model_validate(
            await self.request("GET", url, deadline=deadline)
        )

    async def list_asset_sets(
        self,
        kind: AssetKind,
        localization_id: str,
        deadline: Deadline | None = None,
    ) -> list[Resource]:
        """
        List every asset set of a version localization.

        GET /v1/appStoreVersionLocalizations/{id}/{setResourceType}

        Every page request is bounded by ``deadline``.
        """
        first = Page[Resource].model_validate(
            await self.request(
                "GET",
                f"/v1/appStoreVersionLocalizations/{localization_id.strip()}"
                f"/{kind.set_resource_type}",
                params={"limit": MAX_PAGE_LIMIT},
                deadline=deadline,
            )
        )
        result = await paginate_all(first, lambda url: self.get_page(url, deadline))
        return list(result.data)

    async def ensure_asset_set(
        self,
        kind: AssetKind,
        localization_id: str,
        set_type: str,
        deadline: Deadline | None = None,
    ) -> Resource:
        """
        Find the set with the given display/preview type, creating it if absent.

        POST /v1/{setResourceType}
        """
        sets = await self.list_asset_sets(kind, localization_id, deadline)
        for asset_set in sets:
            value = str(asset_set.attributes.get(kind.set_type_attribute, ""))
            if value.lower() == set_type.lower():
                return asset_set

        data = await self.request(
            "POST",
            f"/v1/{kind.set_resource_type}",
            json={
                "data": {
                    "type": kind.set_resource_type,
                    "attributes": {kind.set_type_attribute: set_type},
                    "relationships": {
                        "appStoreVersionLocalization": {
                            "data": {
                                "type": "appStoreVersionLocalizations",
                                "id": localization_id.strip(),
                            }
                        }
                    },
                }
            },
            deadline=deadline,
        )
        return Resource.model_validate(data["data"])

    async def create_asset(
        self,
        kind: AssetKind,
        set_id: str,
        file_name: str,
        file_size: int,
        mime_type: str | None = None,
    ) -> AssetReservation:
        """
        Reserve an asset upload.

        POST /v1/{resourceType}
        """
        attributes: dict[str, Any] = {"fileName": file_name, "fileSize": file_size}
        if kind.sends_mime_type and mime_type:
            attributes["mimeType"] = mime_type

        data = await self.request(
            "POST",
            f"/v1/{kind.resource_type}",
            json={
                "data": {
                    "type": kind.resource_type,
                    "attributes": attributes,
                    "relationships": {
                        kind.set_relationship: {
                            "data": {"type": kind.set_resource_type, "id": set_id}
                        }
                    },
                }
            },
        )
        return _reservation(Resource.model_validate(data["data"]))

    async def commit_asset(
        self, kind: AssetKind, asset_id: str, checksum: Checksum
    ) -> None:
        """
        Mark an asset uploaded.

        PATCH /v1/{resourceType}/{id}
        """
        await self.request(
            "PATCH",
            f"/v1/{kind.resource_type}/{asset_id.strip()}",
            json={
                "data": {
                    "type": kind.resource_type,
                    "id": asset_id.strip(),
                    "attributes": {
                        "uploaded": True,
                        "sourceFileChecksum": checksum.hash,
                    },
                }
            },
        )

    async def get_delivery_state(
        self, kind: AssetKind, asset_id: str
    ) -> DeliveryState | None:
        """
        Read an asset's delivery state.

        GET /v1/{resourceType}/{id}
        """
        data = await self.request(
            "GET", f"/v1/{kind.resource_type}/{asset_id.strip()}"
        )
        resource = Resource.model_validate(data["data"])
        return _delivery_state(resource)

    def asset_target(self, kind: AssetKind, set_id: str) -> ApiAssetTarget:
        """Upload target creating ``kind`` assets inside ``set_id``."""
        return ApiAssetTarget(self, kind, set_id)

    def upload_executor(self) -> UploadExecutor:
        """Executor sending upload operations without API credentials."""
        return UploadExecutor(self._upload_http, self._config.upload_concurrency)


class ApiAssetTarget:
    """AssetUploadTarget backed by the App Store Connect API."""

    def __init__(self, client: AscApiClient, kind: AssetKind, set_id: str):
        self._client = client
        self._kind = kind
        self._set_id = set_id

    async def create(
        self, file_name: str, file_size: int, mime_type: str | None
    ) -> AssetReservation:
        return await self._client.create_asset(
            self._kind, self._set_id, file_name, file_size, mime_type
        )

    async def commit(self, asset_id: str, checksum: Checksum) -> None:
        await self._client.commit_asset(self._kind, asset_id, checksum)

    async def get_delivery_state(self, asset_id: str) -> DeliveryState | None:
        return await self._client.get_delivery_state(self._kind, asset_id)


def _delivery_state(resource: Resource) -> DeliveryState | None:
    raw = resource.attributes.get("assetDeliveryState")
    if raw is None:
        return None
    return DeliveryState.model_validate(raw)


def _reservation(resource: Resource) -> AssetReservation:
    operations = resource.attributes.get("uploadOperations") or []
    return AssetReservation(
        asset_id=resource.id,
        upload_operations=[UploadOperation.model_validate(op) for op in operations],
        delivery_state=_delivery_state(resource),
    )
