# modules/detector.py

##################################### Imports #####################################
# Libraries
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

# Modules
import config
from modules.errors import BackendInitError, LoadError
from modules.utils import log

###################################################################################

@dataclass(frozen=True)
class Box:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Detection:
    """ One object in one frame, in the raw (unmirrored) frame coordinates """
    label: str
    confidence: float
    box: Box

    @property
    def caption(self):
        return f"{self.label} {int(self.confidence * 100 + 0.5)}%"

##################################################################################
#                               Detector Blueprint
##################################################################################

class BaseDetector(ABC):
    @abstractmethod
    def detect(self, frame):
        """Blocking call, must return a list of Detection. Allowed to raise"""
        pass

##################################################################################
#                               YOLOv8 DETECTOR
##################################################################################

class YOLODetector(BaseDetector):
    """ Wraps an already loaded ultralytics model """

    def __init__(self, model, device, threshold=config.DET_CONF_THRESHOLD):
        self.model_ = model
        self.device_ = device
        self.threshold_ = threshold

    def __str__(self):
        return f"YOLODetector(Device: {self.device_}, Conf_Threshold: %{self.threshold_ * 100})"

    def detect(self, frame):
        results = self.model_.predict(
            source=frame,
            conf=self.threshold_,
            device=self.device_,
            verbose=False
        )

        # results[0] holds boxes and class names for the current frame
        result = results[0]
        names = result.names
        boxes = result.boxes

        detections = []
        if boxes is None or len(boxes) == 0:
            return detections

        xyxy = boxes.xyxy.cpu().numpy()
        confs = boxes.conf.cpu().numpy()
        classes = boxes.cls.cpu().numpy().astype(int)

        for (x1, y1, x2, y2), conf, cls in zip(xyxy, confs, classes):
            detections.append(Detection(
                label=names.get(int(cls), str(int(cls))),
                confidence=float(conf),
                box=Box(float(x1), float(y1), float(x2 - x1), float(y2 - y1))
            ))

        return detections

##################################################################################
#                               Runtime side
##################################################################################

class UltralyticsEngine:
    """
    Backend probing and model loading on top of torch + ultralytics.
    Both are imported here lazily, the bootstrapper makes sure the runtime is present first.
    """

    def __init__(self, threshold=config.DET_CONF_THRESHOLD, warmup_size=(config.FRAME_WIDTH, config.FRAME_HEIGHT)):
        self.threshold_ = threshold
        self.warmup_size_ = warmup_size

    def activate_backend(self, device):
        """ Touches the device once so a broken driver fails here instead of mid-stream """
        import torch

        if device.startswith("cuda") and not torch.cuda.is_available():
            raise BackendInitError("CUDA is not available on this machine")
        if device == "mps" and not torch.backends.mps.is_available():
            raise BackendInitError("MPS is not available on this machine")

        try:
            torch.zeros(1, device=device)
        except Exception as e:
            raise BackendInitError(f"Backend '{device}' failed to initialize: {e}") from e

        return device

    def load_model(self, weights_path, device):
        from ultralytics import YOLO

        try:
            model = YOLO(weights_path)
            model.to(device)

            # First predict compiles kernels, better here than on the first live frame
            w, h = self.warmup_size_
            model.predict(np.zeros((h, w, 3), dtype=np.uint8), device=device, verbose=False)
        except Exception as e:
            raise LoadError(f"Could not load {weights_path} on {device}: {e}") from e

        detector = YOLODetector(model, device, threshold=self.threshold_)
        log(f"Detector Model: {detector}", "INFO")
        return detector
