"""Unit tests for the OpenCV HUD and the command line entry point."""

from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

import main
from modules.interface import DetectionHUD
from modules.orchestrator import DetectionApp
from modules.state import AiEngineState, UiState


def ui_state(**overrides):
    values = dict(camera_running=True, ai_loading=False, ai_error=False, status_text="AI Ready",
                  error_text="", fps=30, log_lines=["[12:00:00] Camera Active. Video playing."])
    values.update(overrides)
    return UiState(**values)


@pytest.fixture
def hud(state):
    app = MagicMock()
    app.state = state
    app.toggle_camera = AsyncMock()
    return DetectionHUD(app, width=640, height=480, log_rows=4)


class TestRender:
    """Test what ends up in the window image."""

    def test_layout_is_video_plus_log_panel(self, hud):
        canvas = hud.render(ui_state(), np.zeros((480, 640, 3), dtype=np.uint8))

        assert canvas.shape == (480 + 4 * 18 + 30, 640, 3)

    def test_placeholder_when_camera_off(self, hud):
        canvas = hud.render(ui_state(camera_running=False), None)

        assert canvas[:480].any() # "CAMERA STOPPED" text

    def test_fps_badge_when_ai_active(self, hud):
        canvas = hud.render(ui_state(), np.zeros((480, 640, 3), dtype=np.uint8))

        # Green badge in the top-right corner
        assert (canvas[12:30, 560:630] == (0, 255, 0)).all(axis=-1).any()

    def test_error_banner_when_ai_failed(self, hud):
        canvas = hud.render(ui_state(ai_error=True, error_text="AI Load Failed. Check Internet."),
                            np.zeros((480, 640, 3), dtype=np.uint8))

        assert tuple(canvas[2, 2]) == (69, 53, 220)

    def test_resizes_odd_frames(self, hud):
        canvas = hud.render(ui_state(), np.zeros((720, 1280, 3), dtype=np.uint8))

        assert canvas.shape[1] == 640


class TestHandleKey:
    """Test key presses turning into app calls."""

    @pytest.mark.asyncio
    async def test_toggle(self, hud):
        assert await hud.handle_key(ord('c')) == "toggle"
        hud.app.toggle_camera.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retry_only_after_failure(self, hud, state):
        await hud.handle_key(ord('r'))
        hud.app.retry_ai.assert_not_called()

        state.set_ai_state(AiEngineState.FAILED)
        await hud.handle_key(ord('r'))
        hud.app.retry_ai.assert_called_once()

    @pytest.mark.asyncio
    async def test_quit(self, hud):
        hud.running = True

        assert await hud.handle_key(27) == "quit"
        assert not hud.running

    @pytest.mark.asyncio
    async def test_unknown_key(self, hud):
        assert await hud.handle_key(ord('x')) is None


class TestMain:
    def test_parse_args_defaults(self):
        args = main.parse_args([])

        assert (args.width, args.height) == (640, 480)
        assert not args.cpu

    def test_build_app_wires_components(self):
        app = main.build_app(main.parse_args(["--cpu", "--camera", "2"]))

        assert isinstance(app, DetectionApp)
        assert app.adapter.src_ == 2
        assert app.bootstrapper.run_on_gpu_ is False
        assert app.state.ai_state is AiEngineState.IDLE
