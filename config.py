# config.py

import os

# --- SYSTEM SETTINGS ---
DEBUG_MODE = False          # Print DEBUG lines (per-frame detection errors etc.)
WINDOW_NAME = "Object Detection (Camera First)"
REFRESH_RATE = 60           # Display refreshes per second, drives the render loop
LOG_LIMIT = 50              # Lines kept in the on-screen log, newest first

# --- CAMERA SETTINGS ---
CAMERA_INDEX = 0            # USB Webcam index for pixels
FRAME_WIDTH = 640
FRAME_HEIGHT = 480
FIRST_FRAME_TIMEOUT = 5.0   # Seconds to wait for the first decodable frame

# --- AI RUNTIME (pinned for stability) ---
RUNTIME_MODULE = "ultralytics"
RUNTIME_VERSION = "8.2.0"
RUNTIME_URL = f"https://pypi.org/project/ultralytics/{RUNTIME_VERSION}/"

# --- MODEL SETTINGS ---
MODEL_VARIANT = "yolov8n"   # nano is fastest
MODEL_RELEASE = "v8.2.0"
MODEL_URL = f"https://github.com/ultralytics/assets/releases/download/{MODEL_RELEASE}/{MODEL_VARIANT}.pt"
MODEL_DIR = os.path.join("assets", "models")
DOWNLOAD_TIMEOUT = 30.0     # Seconds, per request

# --- DETECTOR SETTINGS ---
RUN_ON_GPU = True           # Try the accelerated backend first
PREFERRED_BACKEND = "cuda"
FALLBACK_BACKEND = "cpu"
DET_CONF_THRESHOLD = 0.5    # How sure the detector machine should be
