"""Shared pytest configuration and fakes for the detection app test suite."""

import asyncio
import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from modules.errors import BackendInitError, CaptureError, FetchError, LoadError  # noqa: E402
from modules.state import VisionState  # noqa: E402


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "hardware: mark test as requiring a physical camera"
    )


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require a physical camera",
    )


def pytest_collection_modifyitems(config, items):
    """Skip hardware tests unless --run-hardware is specified."""
    if config.getoption("--run-hardware"):
        return

    skip_hardware = pytest.mark.skip(reason="Need --run-hardware option to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


# =============================================================================
# Fakes
# =============================================================================

def make_frame(width=640, height=480):
    return np.zeros((height, width, 3), dtype=np.uint8)


class FakeStream:
    """Stands in for CameraStream: same methods, no hardware."""

    def __init__(self, src=0, width=640, height=480, fail_open=None, fail_frame=None, native_size=None):
        self.src = src
        w, h = native_size or (width, height)
        self.frame = make_frame(w, h)
        self.fail_open = fail_open
        self.fail_frame = fail_frame
        self.opened = False
        self.started = False
        self.stop_calls = 0

    def open(self):
        if self.fail_open is not None:
            raise self.fail_open
        self.opened = True
        return self

    def start(self):
        self.started = True
        return self

    def wait_first_frame(self, timeout=None):
        if self.fail_frame is not None:
            raise self.fail_frame
        return self.frame

    def read(self):
        return self.frame

    def stop(self):
        self.stop_calls += 1


class StreamFactory:
    """Records every FakeStream it hands out."""

    def __init__(self, **stream_kwargs):
        self.stream_kwargs = stream_kwargs
        self.streams = []

    def __call__(self, src, width, height):
        stream = FakeStream(src, width, height, **self.stream_kwargs)
        self.streams.append(stream)
        return stream


class FakeSession:
    """Minimal CaptureSession for driving the render loop by hand."""

    def __init__(self, frame=None, frame_size=(640, 480)):
        self.frame = make_frame(*frame_size) if frame is None else frame
        self.frame_size = frame_size
        self.active = True

    def read(self):
        return self.frame if self.active else None

    def close(self):
        self.active = False


class FakeModel:
    """detect() returns canned detections or raises."""

    def __init__(self, detections=None, error=None):
        self.detections = detections or []
        self.error = error
        self.calls = 0

    def detect(self, frame):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.detections)


class FakeEngine:
    """Backend probing and model loading with scripted failures."""

    def __init__(self, failing_backends=(), load_error=None, model=None):
        self.failing_backends = set(failing_backends)
        self.load_error = load_error
        self.model = model or FakeModel()
        self.backend_calls = []
        self.load_calls = []

    def activate_backend(self, device):
        self.backend_calls.append(device)
        if device in self.failing_backends:
            raise BackendInitError(f"{device} exploded")
        return device

    def load_model(self, weights_path, device):
        self.load_calls.append((weights_path, device))
        if self.load_error is not None:
            raise self.load_error
        return self.model


class FakeRegistry:
    """Resource registry with optional gates (to hold a fetch in flight) and failures."""

    def __init__(self, failing=(), gates=None):
        self.failing = set(failing)
        self.gates = dict(gates or {})
        self.active = {}
        self.fetch_calls = []

    def is_active(self, key):
        return key in self.active

    def get(self, key):
        return self.active.get(key)

    async def fetch_and_activate(self, resource):
        self.fetch_calls.append(resource.key)
        should_fail = resource.key in self.failing and resource.key not in self.active
        gate = self.gates.get(resource.key)
        if gate is not None:
            await gate.wait()
        if should_fail:
            raise FetchError(f"Failed to load {resource.url}")
        if resource.key in self.active:
            return self.active[resource.key]
        self.active[resource.key] = f"/cache/{resource.target}"
        return self.active[resource.key]


class TickScheduler:
    """Yields to the event loop instead of waiting for a real refresh."""

    def __init__(self):
        self.ticks = 0

    async def next_tick(self):
        self.ticks += 1
        await asyncio.sleep(0)


class StepClock:
    """Deterministic millisecond clock: each call advances by `step`."""

    def __init__(self, step=20.0, start=0.0):
        self.step = step
        self.now = start

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def state():
    return VisionState()


@pytest.fixture
def scheduler():
    return TickScheduler()


@pytest.fixture
def denied_camera():
    return StreamFactory(fail_open=CaptureError("Permission denied"))


@pytest.fixture
def load_error():
    return LoadError("weights corrupt")
