# modules/camera.py

##################################### Imports #####################################
# Libraries
import asyncio
import threading
import time

import cv2

# Modules
import config
from modules.errors import CaptureError
from modules.utils import log

###################################################################################

class CameraStream:
    """ Handles visual stream from the webcam """

    def __init__(self, src=config.CAMERA_INDEX, width=config.FRAME_WIDTH, height=config.FRAME_HEIGHT):
        """ Only remembers the specs, open() does the hardware work """
        self.src_ = src
        self.width_ = width
        self.height_ = height

        self.stream_ = None
        self.thread_ = None
        self.frame_ = None
        self.first_frame_ = threading.Event()
        self.stopped_ = False

    def __str__(self):
        """ Overwrites the print(class) behavior. """
        status = "ACTIVE" if self.stream_ is not None and self.stream_.isOpened() else "OFFLINE"
        return f"CameraStream(Index: {self.src_}, Res: {int(self.width_)}x{int(self.height_)}, Status: {status})"

    def open(self):
        """ Tries the connection, blocking. Raises CaptureError when the device is not usable """
        self.stream_ = cv2.VideoCapture(self.src_)

        if not self.stream_.isOpened():
            self.stream_.release()
            raise CaptureError(f"Could not open camera {self.src_} (permission denied or no device)")

        self.stream_.set(cv2.CAP_PROP_FRAME_WIDTH, self.width_)
        self.stream_.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height_)
        self.stream_.set(cv2.CAP_PROP_FOURCC, cv2.VideoWriter_fourcc(*'MJPG'))

        log("Camera initialized", "INFO")
        return self

    def start(self):
        """ Starts the async video stream """
        self.thread_ = threading.Thread(target=self.update, args=(), daemon=True)
        self.thread_.start()
        log("Video stream started", "INFO")
        return self

    def update(self):
        """ Pulls the last frame from the feed """
        while not self.stopped_:
            grabbed, frame = self.stream_.read()

            if not grabbed or frame is None:
                time.sleep(0.005)
                continue

            self.frame_ = frame
            self.first_frame_.set()

    def wait_first_frame(self, timeout=config.FIRST_FRAME_TIMEOUT):
        """ Blocks until the reader got one decodable frame, the overlay is sized from it """
        if not self.first_frame_.wait(timeout):
            raise CaptureError(f"Camera {self.src_} opened but produced no frames within {timeout}s")
        return self.frame_

    def read(self):
        return self.frame_

    def stop(self):
        """ Kills the async stream, detaching hardware """
        if self.stopped_:
            return
        self.stopped_ = True

        if self.thread_ is not None and self.thread_ is not threading.current_thread():
            self.thread_.join(timeout=1.0)
        if self.stream_ is not None:
            self.stream_.release()


class CaptureSession:
    """ One live binding between the camera and the app. Once stopped it stays stopped """

    def __init__(self, stream, frame_size):
        self.stream_ = stream
        self.frame_size = frame_size # (width, height) of the first real frame
        self.active_ = True

    def __str__(self):
        w, h = self.frame_size
        return f"CaptureSession({w}x{h}, {'active' if self.active_ else 'stopped'})"

    @property
    def active(self):
        return self.active_

    def read(self):
        if not self.active_:
            return None
        return self.stream_.read()

    def close(self):
        if not self.active_:
            return
        self.active_ = False
        self.stream_.stop()


class FrameSourceAdapter:
    """ Starts and stops capture sessions, at most one active at a time """

    def __init__(self, src=config.CAMERA_INDEX, stream_factory=CameraStream,
                 first_frame_timeout=config.FIRST_FRAME_TIMEOUT):
        self.src_ = src
        self.stream_factory_ = stream_factory
        self.first_frame_timeout_ = first_frame_timeout

        self.session = None
        self.lock_ = asyncio.Lock()

    @property
    def active(self):
        return self.session is not None and self.session.active

    def read(self):
        return self.session.read() if self.session is not None else None

    async def start_capture(self, width=config.FRAME_WIDTH, height=config.FRAME_HEIGHT):
        """ Opens the camera and returns a CaptureSession once the first frame is in """
        async with self.lock_:
            if self.active:
                log("Capture already active, stopping it before starting a new one", "WARNING")
                self.stop_capture()

            stream = self.stream_factory_(self.src_, width, height)
            try:
                await asyncio.to_thread(stream.open)
                stream.start()
                frame = await asyncio.to_thread(stream.wait_first_frame, self.first_frame_timeout_)
            except CaptureError:
                stream.stop()
                raise
            except Exception as e:
                # cv2.error and friends from a half-working driver
                stream.stop()
                raise CaptureError(str(e)) from e

            h, w = frame.shape[:2]
            if (w, h) != (width, height):
                log(f"Requested {width}x{height}, camera delivers {w}x{h}. Using native size", "WARNING")

            self.session = CaptureSession(stream, (w, h))
            return self.session

    def stop_capture(self, session=None):
        """ Releases the device. Safe to call when nothing is running """
        target = session if session is not None else self.session
        if target is None:
            return

        target.close()
        if target is self.session:
            self.session = None
