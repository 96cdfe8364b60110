# modules/visionworker.py

##################################### Imports #####################################
# Libraries
import asyncio
import math
import time
from dataclasses import dataclass, field

# Modules
import config
from modules.errors import DetectionError
from modules.utils import log

###################################################################################

@dataclass
class DetectionResult:
    detections: list = field(default_factory=list)
    error: Exception = None

    @property
    def ok(self):
        return self.error is None


async def run_inference(model, frame):
    """ One detect() call off the event loop. Never raises, failures come back in the result """
    try:
        detections = await asyncio.to_thread(model.detect, frame)
        return DetectionResult(detections=list(detections))
    except Exception as e:
        return DetectionResult(error=DetectionError(str(e)))


class FrameRateMeter:
    """ Instantaneous fps from the gap since the previous cycle's start, no averaging """

    def __init__(self):
        self.fps = 0
        self.last_start_ = None

    def tick(self, cycle_start_ms, now_ms):
        if self.last_start_ is not None:
            elapsed = now_ms - self.last_start_
            if elapsed > 0:
                self.fps = int(math.floor(1000.0 / elapsed + 0.5))
        self.last_start_ = cycle_start_ms
        return self.fps


class FrameScheduler:
    """ Stand-in for the display refresh: one tick every 1/REFRESH_RATE seconds """

    def __init__(self, refresh_rate=config.REFRESH_RATE):
        self.interval_ = 1.0 / refresh_rate

    async def next_tick(self):
        await asyncio.sleep(self.interval_)


def now_ms():
    return time.perf_counter() * 1000.0


class VisionWorker:
    """
    The render loop. Runs as long as its capture session is active, AI or no AI.
    Reads the shared state every cycle, only ever writes fps and the overlay.
    """

    def __init__(self, session, state, overlay, scheduler=None, clock=now_ms):
        self.session = session
        self.state = state
        self.overlay = overlay
        self.scheduler_ = scheduler if scheduler is not None else FrameScheduler()
        self.clock_ = clock

        self.meter_ = FrameRateMeter()
        self.cycles = 0

        log("VisionWorker initialized", "INFO")

    async def run(self):
        log("Render loop started", "INFO")

        while self.session.active:
            await self.step()
            await self.scheduler_.next_tick()

        log(f"Render loop stopped after {self.cycles} cycles", "INFO")

    async def step(self):
        """ One cycle. Returns False when the session is gone and the loop should end """
        # 1. Cancellation check
        if not self.session.active:
            return False

        # 2. Capture
        cycle_start = self.clock_()
        frame = self.session.read()
        if frame is None:
            return True

        # 3. Scan, only with a ready model
        model = self.state.model if self.state.ai_ready else None
        if model is not None:
            result = await run_inference(model, frame)

            # Camera was stopped while we were waiting, the surface is gone
            if not self.session.active:
                log("Dropping detection result from a stopped session", "DEBUG")
                return False

            if result.ok:
                self.overlay.draw(result.detections)
            else:
                self.overlay.clear()
                log(f"Detection failed, frame shown without overlay: {result.error}", "DEBUG")
        else:
            self.overlay.clear()

        # 4. Telemetry
        self.state.fps = self.meter_.tick(cycle_start, self.clock_())
        self.cycles += 1
        return True
