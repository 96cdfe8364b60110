# modules/overlay.py

##################################### Imports #####################################
# Libraries
import cv2
import numpy as np

###################################################################################

BOX_COLOR = (0, 255, 0)     # BGR
TEXT_COLOR = (0, 0, 0)
BOX_THICKNESS = 4
FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.6
FONT_THICKNESS = 2
CHIP_PADDING = 10           # added to the measured text width
CHIP_HEIGHT = 25
TEXT_INSET = 5


def mirror_box(box, canvas_width):
    """ The video is shown flipped (selfie view), detections come from the raw frame """
    return canvas_width - box.x - box.width, box.y, box.width, box.height


class OverlayRenderer:
    """
    Transparent BGRA layer drawn on top of the mirrored video, same size as the camera frame.
    Holds the boxes of the last successful detection only.
    """

    def __init__(self, width, height):
        self.width = width
        self.height = height
        self.layer_ = np.zeros((height, width, 4), dtype=np.uint8)

    def __str__(self):
        return f"OverlayRenderer({self.width}x{self.height})"

    @property
    def empty(self):
        return not self.layer_[..., 3].any()

    def clear(self):
        self.layer_[:] = 0

    def draw(self, detections):
        """ Replaces whatever is on the layer with the given detections """
        self.clear()
        for detection in detections:
            self.draw_detection(detection)

    def draw_detection(self, detection):
        mx, y, w, h = (int(round(v)) for v in mirror_box(detection.box, self.width))

        cv2.rectangle(self.layer_, (mx, y), (mx + w, y + h), (*BOX_COLOR, 255), BOX_THICKNESS)

        # Label chip at the mirrored top-left corner
        label = detection.caption
        (text_w, text_h), _ = cv2.getTextSize(label, FONT, FONT_SCALE, FONT_THICKNESS)
        cv2.rectangle(self.layer_, (mx, y), (mx + text_w + CHIP_PADDING, y + CHIP_HEIGHT), (*BOX_COLOR, 255), -1)
        cv2.putText(self.layer_, label, (mx + TEXT_INSET, y + TEXT_INSET + text_h),
                    FONT, FONT_SCALE, (*TEXT_COLOR, 255), FONT_THICKNESS)

    def compose(self, frame):
        """ Mirrored copy of the frame with the layer pasted over it """
        mirrored = cv2.flip(frame, 1)
        if mirrored.shape[:2] != self.layer_.shape[:2]:
            # Frame size changed under us, show it clean rather than misaligned
            return mirrored

        mask = self.layer_[..., 3] > 0
        mirrored[mask] = self.layer_[..., :3][mask]
        return mirrored
