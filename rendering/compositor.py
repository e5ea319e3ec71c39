"""
ImageTransformPipeline - turn a raw comic into the lock-screen composite.

Stages run in order, each writing a fresh file into the run's private
workspace and verifying it exists before the next stage starts:

    1. target size   screen minus padding on each axis
    2. resize        Lanczos fit into the target box
    3. center        paste onto a full-screen background canvas
    4. number        ``#N`` in the upper-right region
    5. caption       wrapped title-text in the lower-left region

Once a stage's output is verified it releases its transient input, so at
most two intermediates exist at a time. The workspace removes anything left
behind on exit, including after a failure.
"""
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from core.errors import TransformIntegrityError
from core.logging.logger import get_logger
from core.settings.config import RenderConfig
from rendering.geometry import ScreenGeometry, compute_target_size
from rendering.image_processor import ImageProcessor
from sources.base_provider import ImageAsset, ResolvedImage

logger = get_logger(__name__)


class StageWorkspace:
    """
    Private temporary directory owning every file a single run creates.

    Used as a context manager; a unique directory per run keeps concurrent
    invocations from overwriting each other's intermediates.
    """

    def __init__(self, root: Optional[Path] = None, prefix: str = "run-"):
        self._root = Path(root) if root is not None else None
        self._prefix = prefix
        self._counter = 0
        self.path: Optional[Path] = None

    def __enter__(self) -> "StageWorkspace":
        if self._root is not None:
            self._root.mkdir(parents=True, exist_ok=True)
        self.path = Path(tempfile.mkdtemp(prefix=self._prefix, dir=self._root))
        logger.debug("[PIPELINE] Workspace %s", self.path)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.path is not None:
            shutil.rmtree(self.path, ignore_errors=True)
            self.path = None

    def stage_path(self, name: str) -> Path:
        """Fresh output path for the next stage."""
        if self.path is None:
            raise RuntimeError("StageWorkspace used outside its context")
        self._counter += 1
        return self.path / f"{self._counter:02d}-{name}.png"


@dataclass(frozen=True)
class CompositeResult:
    """The finished composite and the geometry it was built for."""
    path: Path
    canvas_size: Tuple[int, int]
    target_size: Tuple[int, int]


class ImageTransformPipeline:
    """Resize, centre and annotate a raw image into a screen-sized composite."""

    def __init__(self, render: RenderConfig, output_path: Path):
        self.render = render
        self.output_path = Path(output_path)

    def run(self, resolved: ResolvedImage, screen: ScreenGeometry,
            workspace: StageWorkspace) -> CompositeResult:
        """
        Build the composite for ``resolved`` on ``screen``.

        Raises:
            FatalConfigError: padding leaves no room on the screen
            TransformIntegrityError: a stage did not produce its output
        """
        render = self.render
        target = compute_target_size(screen, render.padding_pixels)
        canvas = screen.size
        comic = resolved.comic
        logger.info("[PIPELINE] %s -> canvas %dx%d, target %dx%d",
                    resolved.path.name, canvas[0], canvas[1], target[0], target[1])

        current = resolved.asset.require("input")

        current = self._stage(workspace, "resize", current,
                              lambda src, dst: ImageProcessor.adaptive_resize(src, dst, target))
        current = self._stage(workspace, "center", current,
                              lambda src, dst: ImageProcessor.center_on_canvas(
                                  src, dst, canvas, render.background_colour))

        if comic is not None:
            current = self._stage(workspace, "number", current,
                                  lambda src, dst: ImageProcessor.annotate_number(
                                      src, dst, comic.number, render))
        else:
            current = self._stage(workspace, "number", current, _passthrough)

        caption = comic.caption if comic is not None else ""
        if caption:
            current = self._stage(workspace, "caption", current,
                                  lambda src, dst: ImageProcessor.annotate_caption(
                                      src, dst, caption, render))
        else:
            current = self._stage(workspace, "caption", current, _passthrough)

        final = self._publish(current)
        logger.info("[PIPELINE] Composite ready at %s", final.path)
        return CompositeResult(path=final.path, canvas_size=canvas, target_size=target)

    def _stage(self, workspace: StageWorkspace, name: str, source: ImageAsset,
               operation: Callable[[Path, Path], bool]) -> ImageAsset:
        destination = workspace.stage_path(name)
        try:
            ok = operation(source.path, destination)
        except Exception as e:
            logger.error("[PIPELINE] Stage '%s' raised: %s", name, e)
            destination.unlink(missing_ok=True)
            raise TransformIntegrityError(name, destination) from e
        if not ok:
            logger.error("[PIPELINE] Stage '%s' reported failure", name)
            destination.unlink(missing_ok=True)
            raise TransformIntegrityError(name, destination)
        output = ImageAsset.from_path(destination, transient=True).require(name)
        source.release()
        return output

    def _publish(self, current: ImageAsset) -> ImageAsset:
        """Atomically move the last stage output to the configured location."""
        staging = self.output_path.with_name(f".{self.output_path.name}.{os.getpid()}.tmp")
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(current.path, staging)
            os.replace(staging, self.output_path)
        except OSError as e:
            logger.error("[PIPELINE] Cannot write %s: %s", self.output_path, e)
            if staging.exists():
                staging.unlink()
            raise TransformIntegrityError("publish", self.output_path) from e
        current.release()
        return ImageAsset.from_path(self.output_path).require("publish")


def _passthrough(src: Path, dst: Path) -> bool:
    shutil.copyfile(src, dst)
    return True
