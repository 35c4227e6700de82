#!/usr/bin/env python3
"""
Demo Script for feed acquisition
Shows timeout, retry and fallback behaviour end to end
"""

import asyncio
import logging
import sys
import time

from dotenv import load_dotenv

from feedguard import AcquisitionOptions, AcquisitionSession, BackoffKind, SourceConfig
from feedguard.failover import SourceFailoverController
from feedguard.monitoring import create_health_app
from feedguard.observability import MetricsRegistry
from feedguard.sources import FileTransport, HttpTransport, ScenarioCameraSource, scenario_camera_session

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def banner(title: str):
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


async def _hanging_primary(key):
    await asyncio.sleep(3600)


async def _empty_fallback(key):
    return {"items": []}


async def demo_scenario():
    """Primary always times out, fallback answers immediately"""
    banner("DEMO: Primary timeout with fallback")

    options = AcquisitionOptions(
        timeout_per_attempt=0.1,
        max_retries=1,
        base_delay=0.05,
        max_delay=1.0,
        backoff_kind=BackoffKind.EXPONENTIAL
    )
    print(f"Options: {options.to_dict()}")

    breakdowns = []
    controller = SourceFailoverController(options, on_breakdown=breakdowns.append)
    session = AcquisitionSession(_hanging_primary, _empty_fallback, controller=controller)
    session.subscribe(lambda state: print(f"  -> {state.status.value}"))

    started = time.monotonic()
    session.start_or_restart("demo")
    state = await session.wait()
    elapsed = time.monotonic() - started

    print(f"Final state: {state.to_dict()}")
    print(f"Value: {state.value}")
    print(f"Elapsed: {elapsed:.3f}s")
    if breakdowns:
        breakdown = breakdowns[-1]
        print(
            f"Primary {breakdown.primary:.3f}s, backoff {breakdown.backoff:.3f}s, "
            f"fallback {breakdown.fallback:.3f}s"
        )


def _camera_source(sources: SourceConfig) -> ScenarioCameraSource:
    if sources.fallback_is_remote:
        fallback = HttpTransport(sources.fallback_base)
    else:
        fallback = FileTransport(sources.fallback_base)
    return ScenarioCameraSource(HttpTransport(sources.api_base), fallback)


async def demo_cameras(scenario_id: str):
    """Load a scenario's cameras from the configured sources"""
    banner(f"DEMO: Cameras for scenario {scenario_id}")

    source = _camera_source(SourceConfig.from_env())
    try:
        session = scenario_camera_session(source, AcquisitionOptions.from_env())

        session.start_or_restart(scenario_id)
        state = await session.wait()

        if state.value is not None:
            origin = "fallback (data may be stale)" if state.is_using_fallback else "live API"
            print(f"✅ {len(state.value)} cameras from {origin}")
            for camera in state.value:
                print(f"  {camera.id:<12} {camera.status:<8} {camera.name}")
        else:
            print(f"❌ {state.message}")
            print(f"   {state.error}")
    finally:
        await source.primary.aclose()
        if isinstance(source.fallback, HttpTransport):
            await source.fallback.aclose()


def serve(scenario_id: str, port: int = 8080):
    """Serve the health endpoint for one camera session"""
    import uvicorn

    metrics = MetricsRegistry()
    options = AcquisitionOptions.from_env()
    source = _camera_source(SourceConfig.from_env())
    session = scenario_camera_session(
        source,
        options,
        controller=SourceFailoverController(options, metrics=metrics)
    )
    app = create_health_app({'cameras': session}, metrics_registry=metrics)

    async def run():
        session.start_or_restart(scenario_id)
        server = uvicorn.Server(uvicorn.Config(app, host="0.0.0.0", port=port))
        await server.serve()

    asyncio.run(run())


def main():
    """Main demo function"""
    if len(sys.argv) > 1:
        if sys.argv[1] == "scenario":
            asyncio.run(demo_scenario())
        elif sys.argv[1] == "cameras" and len(sys.argv) > 2:
            asyncio.run(demo_cameras(sys.argv[2]))
        elif sys.argv[1] == "serve" and len(sys.argv) > 2:
            serve(sys.argv[2], int(sys.argv[3]) if len(sys.argv) > 3 else 8080)
        else:
            print("Usage: python demo.py [scenario|cameras <id>|serve <id> [port]]")
    else:
        asyncio.run(demo_scenario())


if __name__ == "__main__":
    main()
