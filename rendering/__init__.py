"""Compositing of lock-screen images."""

from .compositor import CompositeResult, ImageTransformPipeline, StageWorkspace
from .geometry import ScreenGeometry, compute_target_size
from .image_processor import ImageProcessor, wrap_caption

__all__ = [
    'CompositeResult', 'ImageTransformPipeline', 'StageWorkspace',
    'ScreenGeometry', 'compute_target_size', 'ImageProcessor', 'wrap_caption',
]
