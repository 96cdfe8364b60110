# modules/state.py

##################################### Imports #####################################
# Libraries
from dataclasses import dataclass, field
from enum import Enum

# Modules
from modules.utils import log, LogBuffer

###################################################################################

class AiEngineState(Enum):
    IDLE = "idle"
    DOWNLOADING = "downloading"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class BackendChoice(Enum):
    """ Which compute backend actually came up, informational only """
    PREFERRED = "preferred"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class UiState:
    """ Read-only picture of the app handed to the presentation layer """
    camera_running: bool
    ai_loading: bool
    ai_error: bool
    status_text: str
    error_text: str
    fps: int
    log_lines: list = field(default_factory=list)
    camera_error: str = ""


class VisionState:
    """
    Everything the camera side, the AI side and the HUD share.
    The bootstrapper is the only writer of the AI fields, the render loop the only writer of fps.
    All writes happen on the event loop thread.
    """

    def __init__(self, log_limit=None):
        self.logs = LogBuffer() if log_limit is None else LogBuffer(log_limit)

        # Camera side
        self.camera_running = False
        self.camera_error = ""

        # AI side
        self.ai_state = AiEngineState.IDLE
        self.status_text = "Starting Camera..."
        self.error_text = ""
        self.model = None
        self.backend = None

        # Render loop
        self.fps = 0

        self.listeners_ = []

    def __str__(self):
        return f"VisionState(Camera: {self.camera_running}, AI: {self.ai_state.name}, FPS: {self.fps})"

    # --- Log sink ---
    def log(self, message, level="INFO"):
        """ Goes to the on-screen buffer and the console """
        self.logs.append(message)
        log(message, level)

    # --- AI side ---
    def subscribe(self, listener):
        """ listener(AiEngineState) is called on every AI state transition """
        self.listeners_.append(listener)

    def set_ai_state(self, ai_state, status_text=None):
        changed = ai_state is not self.ai_state
        self.ai_state = ai_state
        if status_text is not None:
            self.status_text = status_text

        if changed:
            for listener in list(self.listeners_):
                listener(ai_state)

    def publish_model(self, model, backend):
        self.model = model
        self.backend = backend

    def discard_model(self):
        self.model = None
        self.backend = None

    def set_error(self, error_text):
        self.error_text = error_text

    def clear_error(self):
        self.error_text = ""

    @property
    def ai_ready(self):
        return self.ai_state is AiEngineState.READY and self.model is not None

    # --- UI surface ---
    def snapshot(self):
        return UiState(
            camera_running=self.camera_running,
            ai_loading=self.ai_state not in (AiEngineState.READY, AiEngineState.FAILED),
            ai_error=self.ai_state is AiEngineState.FAILED,
            status_text=self.status_text,
            error_text=self.error_text,
            fps=self.fps,
            log_lines=self.logs.lines(),
            camera_error=self.camera_error,
        )
