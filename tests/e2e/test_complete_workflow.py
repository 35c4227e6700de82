"""
End-to-end tests for the camera dashboard workflow
Tests acquisition from the point of view of a view bound to a session
"""

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from feedguard.config import SourceConfig
from feedguard.failover import SourceFailoverController
from feedguard.monitoring import create_health_app
from feedguard.observability import MetricsRegistry
from feedguard.session import SessionStatus
from feedguard.sources.cameras import ScenarioCameraSource, scenario_camera_session
from feedguard.sources.transport import FileTransport, HttpTransport


class FakeCameraApi:
    """Mock API server that can be taken offline"""

    def __init__(self, payloads):
        self.payloads = payloads
        self.online = True
        self.requests = []

    def __call__(self, request):
        self.requests.append(request.url.path)
        if not self.online:
            raise httpx.ConnectError("network unreachable", request=request)
        scenario = request.url.path.rsplit('/', 1)[-1]
        if scenario not in self.payloads:
            return httpx.Response(404)
        return httpx.Response(200, json=self.payloads[scenario])


@pytest.mark.e2e
class TestCompleteDashboardWorkflow:
    """End-to-end tests for a dashboard camera view"""

    @pytest.mark.asyncio
    async def test_offline_then_manual_retry(self, io_options, tmp_path, sample_camera_payload):
        # USER STORY: operator opens the dashboard while the API is down
        api = FakeCameraApi({"classroom": sample_camera_payload})
        api.online = False
        config = SourceConfig(api_base="http://cams.local/api", fallback_base=str(tmp_path))

        async with httpx.AsyncClient(transport=httpx.MockTransport(api)) as client:
            source = ScenarioCameraSource(
                HttpTransport(config.api_base, client=client),
                FileTransport(config.fallback_base)
            )
            session = scenario_camera_session(source, io_options)
            seen = []
            session.subscribe(lambda state: seen.append(state.status))

            # Step 1: no API and no fixture, the view shows an error
            session.start_or_restart("classroom")
            state = await session.wait()
            assert state.status is SessionStatus.FAILED
            assert len(api.requests) == 3

            # Step 2: network comes back, the operator presses retry
            api.online = True
            assert session.retry() is not None
            state = await session.wait()

        assert state.status is SessionStatus.LOADED
        assert not state.is_using_fallback
        assert [c.name for c in state.value] == ["Classroom 101 Front", "Corridor East"]
        assert seen == [
            SessionStatus.LOADING, SessionStatus.FAILED,
            SessionStatus.LOADING, SessionStatus.LOADED,
        ]

    @pytest.mark.asyncio
    async def test_switching_scenarios_keeps_last_selection(
        self, io_options, fixtures_dir, sample_camera_payload
    ):
        # USER STORY: operator clicks through scenarios faster than the API answers
        gate = asyncio.Event()
        lab_payload = {"cameras": [{"id": "cam-301", "name": "Lab Door", "status": "online"}]}

        async def handler(request):
            if request.url.path.endswith("/classroom"):
                await gate.wait()
                return httpx.Response(200, json=sample_camera_payload)
            return httpx.Response(200, json=lab_payload)

        options = io_options.replace(timeout_per_attempt=5.0)
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            source = ScenarioCameraSource(
                HttpTransport("http://cams.local/api", client=client),
                FileTransport(fixtures_dir)
            )
            session = scenario_camera_session(source, options)

            session.start_or_restart("classroom")
            await asyncio.sleep(0.01)
            session.start_or_restart("lab")
            gate.set()
            state = await session.wait()
            await asyncio.sleep(0.01)

        assert session.state.key == "lab"
        assert [c.id for c in session.state.value] == ["cam-301"]
        assert state is session.state

    def test_health_endpoint_follows_the_session(self, io_options, fixtures_dir):
        # USER STORY: on-call checks the health endpoint while the API is down
        api = FakeCameraApi({})
        api.online = False
        metrics = MetricsRegistry()

        async def load():
            async with httpx.AsyncClient(transport=httpx.MockTransport(api)) as client:
                source = ScenarioCameraSource(
                    HttpTransport("http://cams.local/api", client=client),
                    FileTransport(fixtures_dir)
                )
                controller = SourceFailoverController(io_options, metrics=metrics)
                session = scenario_camera_session(source, io_options, controller=controller)
                session.start_or_restart("classroom")
                await session.wait()
                return session

        session = asyncio.run(load())
        client = TestClient(create_health_app({'cameras': session}, metrics))

        detailed = client.get("/health/detailed").json()
        assert detailed['status'] == 'degraded'

        state = client.get("/sessions/cameras").json()
        assert state['status'] == 'loaded'
        assert state['origin'] == 'fallback'

        exported = client.get("/metrics").text
        assert 'feedguard_acquisitions_total{origin="fallback",status="success"} 1.0' in exported
