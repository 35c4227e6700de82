"""
Scenario camera lists.

The dashboard's camera view reads `cameras/<scenario>` from the API and,
when that is exhausted, `cameras/<scenario>.json` from static fixtures.
"""

import logging
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..config import AcquisitionOptions
from ..failover import SourceFailoverController
from ..observability.event_log import AcquisitionEventLog
from ..resilience.outcome import TransportError
from ..session import AcquisitionSession
from .transport import RawResponse, ResourceRequest, Transport

logger = logging.getLogger(__name__)

CAMERA_FAILURE_MESSAGE = "Unable to load camera data. Check the network connection or contact an administrator."
SERVER_UNREACHABLE_MESSAGE = "Unable to connect to the server. Please try again later."


class CameraData(BaseModel):
    """One camera feed as served by the API and the fixtures."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    location: str = ""
    zone: str = ""
    status: Literal['online', 'offline', 'warning', 'error'] = 'offline'
    resolution: str = ""
    wdr_support: bool = Field(default=False, alias='wdrSupport')
    night_vision: bool = Field(default=False, alias='nightVision')
    storage_duration: str = Field(default="", alias='storageDuration')
    install_notes: str = Field(default="", alias='installNotes')
    stream_url: Optional[str] = Field(default=None, alias='streamUrl')
    last_seen: str = Field(default="", alias='lastSeen')
    battery_level: Optional[float] = Field(default=None, alias='batteryLevel', ge=0, le=100)


class CameraList(BaseModel):
    cameras: List[CameraData] = Field(default_factory=list)


def parse_camera_list(payload: Any) -> List[CameraData]:
    """
    Parse a `{"cameras": [...]}` payload.

    A missing or null `cameras` field yields an empty list.

    Raises:
        TransportError: If the payload does not describe cameras
    """
    if not isinstance(payload, dict):
        raise TransportError(f"Expected a JSON object, got {type(payload).__name__}")
    if payload.get('cameras') is None:
        return []
    try:
        return CameraList.model_validate(payload).cameras
    except ValidationError as e:
        raise TransportError(f"Malformed camera payload: {e.error_count()} invalid fields") from e


class ScenarioCameraSource:
    """
    Primary and fallback camera fetchers for scenarios.

    Example:
        source = ScenarioCameraSource(HttpTransport(api_base), FileTransport("data"))
        cameras = await source.fetch_primary("classroom")
    """

    def __init__(self, primary: Transport, fallback: Optional[Transport] = None):
        self.primary = primary
        self.fallback = fallback

    async def _fetch(self, transport: Transport, locator: str) -> List[CameraData]:
        response: RawResponse = await transport.issue(ResourceRequest(locator))
        return parse_camera_list(response.payload)

    async def fetch_primary(self, scenario_id: str) -> List[CameraData]:
        return await self._fetch(self.primary, f"cameras/{scenario_id}")

    async def fetch_fallback(self, scenario_id: str) -> List[CameraData]:
        if self.fallback is None:
            raise TransportError("No fallback source configured")
        return await self._fetch(self.fallback, f"cameras/{scenario_id}.json")


def camera_failure_message(error: BaseException, fallback_enabled: bool) -> str:
    return CAMERA_FAILURE_MESSAGE if fallback_enabled else SERVER_UNREACHABLE_MESSAGE


def scenario_camera_session(
    source: ScenarioCameraSource,
    options: Optional[AcquisitionOptions] = None,
    controller: Optional[SourceFailoverController] = None,
    event_log: Optional[AcquisitionEventLog] = None,
) -> AcquisitionSession:
    """Build a session that loads a scenario's cameras."""
    options = options or AcquisitionOptions()
    return AcquisitionSession(
        source.fetch_primary,
        source.fetch_fallback if source.fallback is not None else None,
        controller=controller or SourceFailoverController(options, event_log=event_log),
        options=options,
        event_log=event_log,
        failure_message=camera_failure_message,
    )
