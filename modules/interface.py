# modules/interface.py

##################################### Imports #####################################
# Libraries
import asyncio

import cv2
import numpy as np

# Modules
import config
from modules.utils import log

###################################################################################

FONT = cv2.FONT_HERSHEY_SIMPLEX
GREEN = (0, 255, 0)
RED = (69, 53, 220)
GREY = (170, 170, 170)
WHITE = (255, 255, 255)
PANEL_BG = (26, 26, 26)

KEY_ACTIONS = {
    ord('c'): "toggle",
    ord('r'): "retry",
    ord('q'): "quit",
    27: "quit", # Esc
}


class DetectionHUD:
    """ Passive OpenCV window: draws whatever the app state says, turns key presses into app calls """

    def __init__(self, app, window_name=config.WINDOW_NAME,
                 width=config.FRAME_WIDTH, height=config.FRAME_HEIGHT, log_rows=6):
        self.app = app
        self.window_name_ = window_name
        self.width_ = width
        self.height_ = height
        self.log_rows_ = log_rows
        self.running = False

        log("DetectionHUD Initialized", "INFO")

    def render(self, ui, frame=None):
        """ Builds the full window image: video area on top, log panel below """
        if frame is not None:
            video = cv2.resize(frame, (self.width_, self.height_)) if frame.shape[1::-1] != (self.width_, self.height_) else frame
        else:
            video = np.zeros((self.height_, self.width_, 3), dtype=np.uint8)
            cv2.putText(video, "CAMERA STOPPED", (self.width_ // 2 - 110, self.height_ // 2),
                        FONT, 0.8, GREY, 2)

        # 1. Loading pill or fps badge
        if ui.ai_loading:
            self._draw_status_pill(video, ui.status_text)
        elif not ui.ai_error:
            badge = f"AI Active | {ui.fps} FPS"
            (tw, th), _ = cv2.getTextSize(badge, FONT, 0.5, 1)
            x = self.width_ - tw - 20
            cv2.rectangle(video, (x, 10), (x + tw + 10, 10 + th + 10), GREEN, -1)
            cv2.putText(video, badge, (x + 5, 10 + th + 5), FONT, 0.5, (0, 0, 0), 1)

        # 2. Error banner, only when AI totally failed
        if ui.ai_error:
            cv2.rectangle(video, (0, 0), (self.width_, 40), RED, -1)
            cv2.putText(video, f"{ui.error_text[:60]}  [R] Retry AI", (10, 26), FONT, 0.5, WHITE, 1)

        if ui.camera_error:
            cv2.putText(video, ui.camera_error[:70], (10, self.height_ - 60), FONT, 0.5, RED, 1)

        # 3. Log panel
        panel = np.full((self.log_rows_ * 18 + 30, self.width_, 3), PANEL_BG, dtype=np.uint8)
        controls = f"[C] {'Stop' if ui.camera_running else 'Start'} camera   [R] Retry AI   [Q] Quit"
        cv2.putText(panel, controls, (10, 18), FONT, 0.45, WHITE, 1)
        for i, line in enumerate(ui.log_lines[:self.log_rows_]):
            cv2.putText(panel, line[:90], (10, 40 + i * 18), FONT, 0.4, GREY, 1)

        return np.vstack([video, panel])

    def _draw_status_pill(self, video, text):
        (tw, th), _ = cv2.getTextSize(text, FONT, 0.5, 1)
        x = (self.width_ - tw) // 2 - 16
        y = self.height_ - 50
        cv2.rectangle(video, (x, y), (x + tw + 32, y + th + 16), (0, 0, 0), -1)
        cv2.rectangle(video, (x, y), (x + tw + 32, y + th + 16), (68, 68, 68), 1)
        cv2.circle(video, (x + 10, y + (th + 16) // 2), 4, (255, 210, 0), -1) # spinner dot
        cv2.putText(video, text, (x + 20, y + th + 8), FONT, 0.5, (204, 204, 204), 1)

    async def handle_key(self, key):
        """ Maps one key code onto the app, returns the action name (or None) """
        action = KEY_ACTIONS.get(key)
        if action == "toggle":
            await self.app.toggle_camera()
        elif action == "retry":
            if self.app.state.snapshot().ai_error:
                self.app.retry_ai()
        elif action == "quit":
            self.running = False
        return action

    async def run(self, refresh_rate=config.REFRESH_RATE):
        """ Draw, poll keys, yield to the event loop. Ends on quit """
        self.running = True
        interval = 1.0 / refresh_rate

        try:
            while self.running:
                canvas = self.render(self.app.state.snapshot(), self.app.compose_frame())
                cv2.imshow(self.window_name_, canvas)

                key = cv2.waitKey(1) & 0xFF
                if key != 0xFF:
                    await self.handle_key(key)

                await asyncio.sleep(interval)
        finally:
            cv2.destroyAllWindows()
