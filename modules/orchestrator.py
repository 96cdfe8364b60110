# modules/orchestrator.py

##################################### Imports #####################################
# Libraries
import asyncio

# Modules
import config
from modules.errors import CaptureError
from modules.overlay import OverlayRenderer
from modules.visionworker import VisionWorker
from modules.utils import log

###################################################################################

class DetectionApp:
    """
    Owns the two pipelines and keeps them apart: the camera starts first and never waits on AI,
    the AI bootstrap runs on its own task and never touches the camera.
    """

    def __init__(self, adapter, bootstrapper, state, scheduler=None,
                 width=config.FRAME_WIDTH, height=config.FRAME_HEIGHT):
        self.adapter = adapter
        self.bootstrapper = bootstrapper
        self.state = state
        self.scheduler_ = scheduler
        self.width_ = width
        self.height_ = height

        self.overlay = None
        self.worker = None
        self.loop_task_ = None
        self.ai_task_ = None

    def __str__(self):
        return f"DetectionApp({self.state})"

    async def start(self):
        self.state.log("Initializing...")

        # 1. Camera, immediately
        await self.start_camera()

        # 2. AI in the background
        self.start_ai()

    # --- Camera side ---
    async def start_camera(self):
        """ Returns True when the camera is live. CaptureError is surfaced, not raised """
        self.state.log("Requesting Camera Access...")
        try:
            session = await self.adapter.start_capture(self.width_, self.height_)
        except CaptureError as e:
            self.state.camera_running = False
            self.state.camera_error = f"Camera Error: {e}"
            self.state.log(f"Camera Failed: {e}", "ERROR")
            return False

        width, height = session.frame_size
        self.overlay = OverlayRenderer(width, height)
        self.state.camera_error = ""
        self.state.camera_running = True
        self.state.log("Camera Active. Video playing.")

        # Loop runs even if AI isn't ready, keeps the fps counting
        self.worker = VisionWorker(session, self.state, self.overlay, scheduler=self.scheduler_)
        self.loop_task_ = asyncio.create_task(self.worker.run())
        return True

    def stop_camera(self):
        self.adapter.stop_capture()
        self.state.camera_running = False
        if self.overlay is not None:
            self.overlay.clear()
        self.state.log("Camera Stopped.")

    async def toggle_camera(self):
        if self.state.camera_running:
            self.stop_camera()
        else:
            await self.start_camera()

    def compose_frame(self):
        """ Latest mirrored frame with the overlay on top, None when the camera is off """
        frame = self.adapter.read()
        if frame is None or self.overlay is None:
            return None
        return self.overlay.compose(frame)

    # --- AI side ---
    def start_ai(self):
        self.ai_task_ = asyncio.create_task(self.bootstrapper.bootstrap())
        return self.ai_task_

    def retry_ai(self):
        """ Manual only, the newest attempt wins over anything still in flight """
        self.state.clear_error()
        self.ai_task_ = asyncio.create_task(self.bootstrapper.retry())
        return self.ai_task_

    async def shutdown(self):
        if self.state.camera_running:
            self.stop_camera()
        else:
            self.adapter.stop_capture()

        if self.loop_task_ is not None:
            await self.loop_task_

        if self.ai_task_ is not None and not self.ai_task_.done():
            # Process is going away, nobody is left to read the result
            self.ai_task_.cancel()
            try:
                await self.ai_task_
            except asyncio.CancelledError:
                pass

        log("Cleaning up...", "INFO")
