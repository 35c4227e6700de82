"""
Data sources for acquisitions.
"""

from .cameras import (
    CameraData,
    CameraList,
    ScenarioCameraSource,
    parse_camera_list,
    scenario_camera_session,
)
from .transport import FileTransport, HttpTransport, RawResponse, ResourceRequest, Transport

__all__ = [
    'CameraData',
    'CameraList',
    'ScenarioCameraSource',
    'parse_camera_list',
    'scenario_camera_session',
    'FileTransport',
    'HttpTransport',
    'RawResponse',
    'ResourceRequest',
    'Transport',
]
