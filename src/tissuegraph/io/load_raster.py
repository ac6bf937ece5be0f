"""
Label raster loading for tissuegraph.

Reads raw label values from `.npy` arrays or from images. Color images are
packed into 24-bit 0xRRGGBB values, so a white pixel reads as the default
bond value; single-channel images keep their values.
"""

import os

import cv2
import numpy as np

from tissuegraph.tracer import get_tracer, trace

IMAGE_EXTENSIONS = [".png", ".tiff", ".tif", ".bmp"]


@trace(label="load_label_raster")
def load_label_raster(path):
    """
    Load raw label values from disk.

    Returns a 2-D int64 array.

    Raises FileNotFoundError if path does not exist.
    Raises ValueError if the file cannot be read as a label raster.
    """
    tracer = get_tracer()

    if not os.path.exists(path):
        raise FileNotFoundError(f"Label raster not found: {path}")

    ext = os.path.splitext(path)[1].lower()
    if ext == ".npy":
        raw = np.load(path)
    else:
        raw = cv2.imread(path, cv2.IMREAD_UNCHANGED)
        if raw is None:
            raise ValueError(f"Failed to load image: {path}")
        raw = pack_rgb(raw)

    if raw.ndim != 2:
        raise ValueError(f"Label raster must be 2-D, got shape {raw.shape}: {path}")

    tracer.event(f"Loaded label raster: {raw.shape[1]}x{raw.shape[0]}", dtype=str(raw.dtype))

    return raw.astype(np.int64)


def pack_rgb(image):
    """
    Pack an OpenCV image into one integer per pixel.

    BGR and BGRA pixels become r << 16 | g << 8 | b (alpha is dropped);
    single-channel images are returned unchanged.
    """
    if image.ndim == 2:
        return image
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"Unsupported image layout {image.shape}")

    pixels = image.astype(np.int64)
    b, g, r = pixels[:, :, 0], pixels[:, :, 1], pixels[:, :, 2]
    return (r << 16) | (g << 8) | b


def validate_raster_inputs(paths):
    """
    Validate that all input paths exist and have a supported format.

    Returns a list of error messages (empty if all valid).
    """
    errors = []

    for path in paths:
        if path is None:
            continue
        if not os.path.exists(path):
            errors.append(f"File not found: {path}")
            continue

        ext = os.path.splitext(path)[1].lower()
        if ext != ".npy" and ext not in IMAGE_EXTENSIONS:
            errors.append(f"Unsupported raster format: {path}")

    return errors
