"""
Pytest configuration and shared fixtures
Provides common test utilities and fixtures for all tests
"""

import json
import os
import sys

import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from feedguard.config import AcquisitionOptions


@pytest.fixture
def fast_options():
    """Options with short timeouts so failing sources resolve quickly"""
    return AcquisitionOptions(
        timeout_per_attempt=0.05,
        max_retries=2,
        base_delay=0.01,
        max_delay=0.04
    )


@pytest.fixture
def io_options(fast_options):
    """Fast backoff with enough per-attempt time for real file and HTTP I/O"""
    return fast_options.replace(timeout_per_attempt=1.0)


@pytest.fixture
def recorded_delays():
    """List the no_sleep fixture appends requested backoff delays to"""
    return []


@pytest.fixture
def no_sleep(recorded_delays):
    """Backoff sleep that records the delay and returns immediately"""
    async def sleep(seconds):
        recorded_delays.append(seconds)
    return sleep


@pytest.fixture
def sample_camera_payload():
    """Camera list as served by the API"""
    return {
        "cameras": [
            {
                "id": "cam-101",
                "name": "Classroom 101 Front",
                "location": "Building A, 1F",
                "zone": "classroom",
                "status": "online",
                "resolution": "1920x1080",
                "wdrSupport": True,
                "nightVision": False,
                "storageDuration": "30 days",
                "installNotes": "Ceiling mount above whiteboard",
                "streamUrl": "rtsp://10.0.0.11/stream1",
                "lastSeen": "2024-01-01T08:00:00Z"
            },
            {
                "id": "cam-102",
                "name": "Corridor East",
                "location": "Building A, 1F",
                "zone": "corridor",
                "status": "warning",
                "resolution": "1280x720",
                "wdrSupport": False,
                "nightVision": True,
                "storageDuration": "14 days",
                "installNotes": "",
                "lastSeen": "2024-01-01T07:58:00Z",
                "batteryLevel": 42
            }
        ]
    }


@pytest.fixture
def fixtures_dir(tmp_path, sample_camera_payload):
    """Directory of fallback fixtures laid out as cameras/<scenario>.json"""
    cameras_dir = tmp_path / "cameras"
    cameras_dir.mkdir()
    with open(cameras_dir / "classroom.json", 'w', encoding='utf-8') as f:
        json.dump(sample_camera_payload, f)
    with open(cameras_dir / "empty.json", 'w', encoding='utf-8') as f:
        json.dump({}, f)
    return tmp_path


# Custom markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for component interactions"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests for complete workflows"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that wait on real timers"
    )
