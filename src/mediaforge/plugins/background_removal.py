#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/plugins/background_removal.py
"""Edge-detection background removal.

Pixels outside the filled external contours of the Canny edge map are
made fully transparent (and black, for formats without alpha).
"""

from __future__ import annotations

import logging
from typing import Mapping

from mediaforge import imaging
from mediaforge.constants import DEFAULT_EDGE_LOWER_THRESHOLD, DEFAULT_EDGE_UPPER_THRESHOLD, ParamValue
from mediaforge.utils.decorators import requires_dependencies

logger = logging.getLogger(__name__)


class EdgeDetectionBackgroundRemoval:
    """Background removal provider using OpenCV edge detection.

    Parameters read from the URL: ``lowerThreshold`` and ``upperThreshold``
    (Canny hysteresis thresholds, defaults 50 and 150).
    """

    @requires_dependencies(
        "background-removal",
        [("opencv-python-headless", "cv2", ""), ("numpy", "numpy", "")],
    )
    def apply(self, buffer: bytes, params: Mapping[str, ParamValue]) -> bytes:
        import cv2
        import numpy as np
        from PIL import Image

        lower = float(params.get("lowerThreshold", DEFAULT_EDGE_LOWER_THRESHOLD))
        upper = float(params.get("upperThreshold", DEFAULT_EDGE_UPPER_THRESHOLD))

        source = imaging.decode_image(buffer)
        fmt = source.format
        rgba = np.array(source.convert("RGBA"))

        gray = cv2.cvtColor(rgba, cv2.COLOR_RGBA2GRAY)
        edges = cv2.Canny(gray, lower, upper)
        contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        mask = np.zeros(gray.shape, dtype=np.uint8)
        cv2.drawContours(mask, contours, -1, 255, thickness=cv2.FILLED)
        logger.debug(f"Background removal kept {len(contours)} contour(s)")

        rgba[mask == 0] = 0
        return imaging.encode_image(Image.fromarray(rgba, "RGBA"), fmt)
