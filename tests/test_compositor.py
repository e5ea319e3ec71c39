"""
End-to-end tests for ImageTransformPipeline and StageWorkspace.
"""
from unittest.mock import patch

import pytest
from PIL import Image

from core.errors import FatalConfigError, TransformIntegrityError
from core.settings.config import RenderConfig
from rendering.compositor import ImageTransformPipeline, StageWorkspace
from rendering.geometry import ScreenGeometry
from rendering.image_processor import ImageProcessor
from sources.base_provider import ComicReference, ImageAsset, ResolvedImage
from sources.remote_source import default_image

SCREEN = ScreenGeometry(1920, 1080, "test")


def _resolved(path, comic=None, transient=False):
    return ResolvedImage(asset=ImageAsset.from_path(path, transient=transient), comic=comic)


class TestStageWorkspace:
    def test_creates_and_removes_directory(self, tmp_path):
        with StageWorkspace(root=tmp_path) as workspace:
            path = workspace.path
            assert path.is_dir()
            assert path.parent == tmp_path
            (path / "junk.png").write_bytes(b"x")
        assert not path.exists()

    def test_removed_after_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with StageWorkspace(root=tmp_path) as workspace:
                path = workspace.path
                raise RuntimeError("boom")
        assert not path.exists()

    def test_concurrent_workspaces_are_distinct(self, tmp_path):
        with StageWorkspace(root=tmp_path) as a, StageWorkspace(root=tmp_path) as b:
            assert a.path != b.path

    def test_stage_paths_are_fresh(self, tmp_path):
        with StageWorkspace(root=tmp_path) as workspace:
            first = workspace.stage_path("resize")
            second = workspace.stage_path("resize")
            assert first != second

    def test_stage_path_outside_context(self):
        with pytest.raises(RuntimeError):
            StageWorkspace().stage_path("resize")


class TestPipeline:
    def test_explicit_image_composite(self, qt_app, temp_image, tmp_path):
        output = tmp_path / "out" / "lock.png"
        pipeline = ImageTransformPipeline(RenderConfig(), output)

        with StageWorkspace(root=tmp_path / "work") as workspace:
            result = pipeline.run(_resolved(temp_image), SCREEN, workspace)
            leftovers = list(workspace.path.iterdir())

        assert result.path == output
        assert result.canvas_size == (1920, 1080)
        assert result.target_size == (1820, 980)
        with Image.open(output) as out:
            assert out.size == (1920, 1080)
        # The user's image is never consumed.
        assert temp_image.exists()
        assert leftovers == []

    def test_comic_with_caption(self, qt_app, tmp_path):
        src = tmp_path / "xkcd-0353.png"
        Image.new("RGB", (500, 400), (255, 255, 255)).save(src)
        comic = ComicReference(number=353, hotlink_url="https://x/y/z.png", caption="Perl, I'm leaving you.")
        output = tmp_path / "lock.png"

        with StageWorkspace(root=tmp_path / "work") as workspace:
            result = ImageTransformPipeline(RenderConfig(), output).run(
                _resolved(src, comic), SCREEN, workspace)

        with Image.open(result.path) as out:
            assert out.size == (1920, 1080)

    def test_transient_input_released(self, qt_app, tmp_path):
        with StageWorkspace(root=tmp_path / "work") as workspace:
            download = workspace.path / "xkcd-3000.png"
            Image.new("RGB", (300, 200), (0, 0, 0)).save(download)
            ImageTransformPipeline(RenderConfig(), tmp_path / "lock.png").run(
                _resolved(download, ComicReference(number=3000), transient=True), SCREEN, workspace)
            assert not download.exists()

    def test_fallback_default_composite(self, qt_app, tmp_path):
        resolved = default_image()
        output = tmp_path / "lock.png"

        with StageWorkspace(root=tmp_path / "work") as workspace:
            result = ImageTransformPipeline(RenderConfig(), output).run(resolved, SCREEN, workspace)

        assert result.path.exists()
        assert resolved.path.exists()

    def test_output_replaced_atomically(self, qt_app, temp_image, tmp_path):
        output = tmp_path / "lock.png"
        output.write_bytes(b"previous composite")

        with StageWorkspace(root=tmp_path / "work") as workspace:
            ImageTransformPipeline(RenderConfig(), output).run(_resolved(temp_image), SCREEN, workspace)

        with Image.open(output) as out:
            assert out.size == (1920, 1080)
        assert [p.name for p in tmp_path.iterdir() if p.name.startswith(".")] == []

    def test_padding_too_large(self, qt_app, temp_image, tmp_path):
        pipeline = ImageTransformPipeline(RenderConfig(padding_pixels=1080), tmp_path / "lock.png")
        with StageWorkspace(root=tmp_path / "work") as workspace:
            with pytest.raises(FatalConfigError):
                pipeline.run(_resolved(temp_image), SCREEN, workspace)

    def test_missing_input(self, qt_app, tmp_path):
        pipeline = ImageTransformPipeline(RenderConfig(), tmp_path / "lock.png")
        with StageWorkspace(root=tmp_path / "work") as workspace:
            with pytest.raises(TransformIntegrityError) as excinfo:
                pipeline.run(_resolved(tmp_path / "gone.png"), SCREEN, workspace)
        assert excinfo.value.stage == "input"

    def test_stage_failure_raises_integrity_error(self, qt_app, temp_image, tmp_path):
        output = tmp_path / "lock.png"
        with patch.object(ImageProcessor, "center_on_canvas", return_value=False):
            with StageWorkspace(root=tmp_path / "work") as workspace:
                with pytest.raises(TransformIntegrityError) as excinfo:
                    ImageTransformPipeline(RenderConfig(), output).run(
                        _resolved(temp_image), SCREEN, workspace)
        assert excinfo.value.stage == "center"
        assert not output.exists()

    def test_stage_output_vanishing_raises(self, qt_app, temp_image, tmp_path):
        def _claims_success(src, dst, *args):
            return True

        with patch.object(ImageProcessor, "adaptive_resize", side_effect=_claims_success):
            with StageWorkspace(root=tmp_path / "work") as workspace:
                with pytest.raises(TransformIntegrityError) as excinfo:
                    ImageTransformPipeline(RenderConfig(), tmp_path / "lock.png").run(
                        _resolved(temp_image), SCREEN, workspace)
        assert excinfo.value.stage == "resize"

    def test_unwritable_output(self, qt_app, temp_image, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        pipeline = ImageTransformPipeline(RenderConfig(), blocker / "lock.png")
        with StageWorkspace(root=tmp_path / "work") as workspace:
            with pytest.raises(TransformIntegrityError) as excinfo:
                pipeline.run(_resolved(temp_image), SCREEN, workspace)
        assert excinfo.value.stage == "publish"

    def test_oversized_image_raises_integrity_error(self, qt_app, temp_image, tmp_path, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        output = tmp_path / "lock.png"
        with StageWorkspace(root=tmp_path / "work") as workspace:
            with pytest.raises(TransformIntegrityError) as excinfo:
                ImageTransformPipeline(RenderConfig(), output).run(_resolved(temp_image), SCREEN, workspace)
        assert excinfo.value.stage == "resize"
        assert not output.exists()

    def test_stage_exception_raises_integrity_error(self, qt_app, temp_image, tmp_path):
        with patch("rendering.compositor.shutil.copyfile", side_effect=OSError(28, "No space left on device")):
            with StageWorkspace(root=tmp_path / "work") as workspace:
                with pytest.raises(TransformIntegrityError) as excinfo:
                    ImageTransformPipeline(RenderConfig(), tmp_path / "lock.png").run(
                        _resolved(temp_image), SCREEN, workspace)
        assert excinfo.value.stage == "number"
        assert isinstance(excinfo.value.__cause__, OSError)
