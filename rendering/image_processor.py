"""
Image processing for lock-screen composites.

Each operation reads one file and writes another, so the compositor can
verify every intermediate on disk. Resampling uses PIL Lanczos; canvas
work and text rendering use QImage/QPainter.
"""
import textwrap
from pathlib import Path
from typing import List, Tuple

from PIL import Image, ImageFilter
from PySide6.QtCore import QPoint, QRect, Qt
from PySide6.QtGui import QColor, QFont, QFontInfo, QFontMetrics, QImage, QPainter

from core.logging.logger import get_logger
from core.settings.config import RenderConfig

logger = get_logger(__name__)

# Inner spacing between the caption box edge and its text.
CAPTION_BOX_MARGIN = 10
# Minimum distance between annotations and the screen edge.
MIN_EDGE_INSET = 10


def wrap_caption(text: str, width: int = 100) -> List[str]:
    """
    Split ``text`` into lines of at most ``width`` characters.

    Whitespace at break points is kept rather than dropped, so
    ``"".join(wrap_caption(text))`` always reproduces ``text``. Words longer
    than ``width`` are split.
    """
    if not text:
        return []
    wrapper = textwrap.TextWrapper(
        width=width,
        expand_tabs=False,
        replace_whitespace=False,
        drop_whitespace=False,
        break_long_words=True,
    )
    return wrapper.wrap(text)


class ImageProcessor:
    """
    File-to-file image operations used by the transform stages.

    Every method returns True when it wrote its output file.
    """

    @staticmethod
    def fit_size(source: Tuple[int, int], box: Tuple[int, int]) -> Tuple[int, int]:
        """Largest size with the source's aspect ratio that fits inside ``box``."""
        src_w, src_h = source
        box_w, box_h = box
        scale = min(box_w / src_w, box_h / src_h)
        width = min(box_w, max(1, int(round(src_w * scale))))
        height = min(box_h, max(1, int(round(src_h * scale))))
        return (width, height)

    @staticmethod
    def adaptive_resize(src: Path, dst: Path, target: Tuple[int, int],
                        sharpen: bool = True) -> bool:
        """
        Scale ``src`` to fit within ``target`` keeping its aspect ratio.

        Uses Lanczos resampling in both directions. When downscaling, an
        unsharp mask (aggressive reductions) or a plain sharpen (moderate
        reductions) restores line detail lost to the filter.
        """
        try:
            with Image.open(src) as img:
                img.load()
                if img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info:
                    img = img.convert("RGBA")
                elif img.mode != "RGB":
                    img = img.convert("RGB")

                width, height = ImageProcessor.fit_size(img.size, target)
                if (width, height) == img.size:
                    scaled = img.copy()
                    logger.debug("Resize: exact size match %dx%d, no scaling", width, height)
                else:
                    scaled = img.resize((width, height), Image.Resampling.LANCZOS)

                if sharpen and (width < img.width or height < img.height):
                    scale_factor = min(width / img.width, height / img.height)
                    if scale_factor < 0.5:
                        scaled = scaled.filter(ImageFilter.UnsharpMask(radius=2, percent=150, threshold=3))
                    else:
                        scaled = scaled.filter(ImageFilter.SHARPEN)

                scaled.save(dst, "PNG")
                logger.debug("Resize: %dx%d -> %dx%d (box %dx%d)",
                             img.width, img.height, width, height, target[0], target[1])
        except (OSError, Image.DecompressionBombError) as e:
            logger.error("Resize failed for %s: %s", src, e)
            return False
        return True

    @staticmethod
    def center_on_canvas(src: Path, dst: Path, canvas: Tuple[int, int],
                         background: str) -> bool:
        """Draw ``src`` centred on a ``canvas``-sized image filled with ``background``."""
        image = QImage(str(src))
        if image.isNull():
            logger.error("Center: cannot load %s", src)
            return False

        result = QImage(canvas[0], canvas[1], QImage.Format.Format_RGB32)
        result.fill(QColor(background))

        x_offset = (canvas[0] - image.width()) // 2
        y_offset = (canvas[1] - image.height()) // 2

        painter = QPainter(result)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.drawImage(x_offset, y_offset, image)
        painter.end()

        logger.debug("Center: %dx%d on %dx%d at (%d,%d)",
                     image.width(), image.height(), canvas[0], canvas[1], x_offset, y_offset)
        return result.save(str(dst), "PNG")

    @staticmethod
    def _make_font(render: RenderConfig, point_size: int) -> QFont:
        font = QFont(render.font_family)
        font.setPointSize(point_size)
        actual = QFontInfo(font).family()
        if actual != render.font_family:
            logger.debug("Font '%s' not installed, using '%s'", render.font_family, actual)
        return font

    @staticmethod
    def _load_for_painting(src: Path) -> QImage:
        image = QImage(str(src))
        if image.isNull():
            return image
        return image.convertToFormat(QImage.Format.Format_ARGB32_Premultiplied)

    @staticmethod
    def annotate_number(src: Path, dst: Path, number: int, render: RenderConfig) -> bool:
        """Draw ``#<number>`` in the upper-right region."""
        image = ImageProcessor._load_for_painting(src)
        if image.isNull():
            logger.error("Annotate number: cannot load %s", src)
            return False

        inset = max(MIN_EDGE_INSET, render.padding_pixels // 2)
        painter = QPainter(image)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
        painter.setFont(ImageProcessor._make_font(render, render.number_point_size))
        painter.setPen(QColor(render.number_colour))
        area = QRect(0, inset, image.width() - inset, image.height() - inset)
        painter.drawText(area, int(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignTop), f"#{number}")
        painter.end()

        return image.save(str(dst), "PNG")

    @staticmethod
    def annotate_caption(src: Path, dst: Path, caption: str, render: RenderConfig) -> bool:
        """
        Draw the word-wrapped caption in the lower-left region over a
        semi-transparent box.
        """
        image = ImageProcessor._load_for_painting(src)
        if image.isNull():
            logger.error("Annotate caption: cannot load %s", src)
            return False

        # Breaks keep their whitespace; it is only trimmed for display.
        lines = [" ".join(line.split()) for line in wrap_caption(caption, render.tooltip_wrap_width)]
        lines = [line for line in lines if line]

        if lines:
            font = ImageProcessor._make_font(render, render.caption_point_size)
            metrics = QFontMetrics(font)
            line_height = metrics.lineSpacing()
            text_width = max(metrics.horizontalAdvance(line) for line in lines)

            inset = max(MIN_EDGE_INSET, render.padding_pixels // 2)
            box_width = min(text_width + 2 * CAPTION_BOX_MARGIN, image.width() - 2 * MIN_EDGE_INSET)
            box_height = min(line_height * len(lines) + 2 * CAPTION_BOX_MARGIN,
                             image.height() - 2 * MIN_EDGE_INSET)
            box = QRect(inset, image.height() - inset - box_height, box_width, box_height)

            box_colour = QColor(render.caption_box_colour)
            box_colour.setAlpha(render.caption_box_alpha)

            painter = QPainter(image)
            painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
            painter.fillRect(box, box_colour)
            painter.setFont(font)
            painter.setPen(QColor(render.caption_colour))
            for index, line in enumerate(lines):
                baseline = box.top() + CAPTION_BOX_MARGIN + index * line_height + metrics.ascent()
                painter.drawText(QPoint(box.left() + CAPTION_BOX_MARGIN, baseline), line)
            painter.end()

            logger.debug("Caption: %d lines in %dx%d box", len(lines), box_width, box_height)

        return image.save(str(dst), "PNG")
