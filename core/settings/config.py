"""
Immutable run configuration.

``LockConfig`` is built exactly once at startup from three layers (dataclass
defaults, persisted QSettings overrides, command-line flags) and then passed
explicitly to every component. Derive modified copies with
``dataclasses.replace``; instances are frozen.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Tuple

from PySide6.QtGui import QColor

from core.errors import FatalConfigError
from core.settings import storage_paths

LOCK_PROGRAMS = ("i3lock", "swaylock")

_SIZE_PATTERN = re.compile(r'^\s*(\d+)\s*[xX]\s*(\d+)\s*$')


class SelectionMode(Enum):
    """How the raw image is chosen."""
    RANDOM = "random"
    LATEST = "latest"
    EXPLICIT = "explicit"


@dataclass(frozen=True)
class RenderConfig:
    """Compositing parameters; constant for the lifetime of a run."""
    background_colour: str = "#ffffff"
    padding_pixels: int = 100
    font_family: str = "xkcd Script"
    number_point_size: int = 28
    number_colour: str = "#000000"
    caption_point_size: int = 16
    caption_colour: str = "#ffffff"
    caption_box_colour: str = "#000000"
    caption_box_alpha: int = 160
    tooltip_wrap_width: int = 100


@dataclass(frozen=True)
class LockConfig:
    """Everything a run needs to know, resolved up front."""
    mode: SelectionMode = SelectionMode.RANDOM
    image_path: Optional[Path] = None
    verbose: bool = False
    lock_program: str = "i3lock"
    image_dir: Path = field(default_factory=storage_paths.get_default_image_dir)
    output_path: Path = field(default_factory=storage_paths.get_default_output_path)
    render: RenderConfig = field(default_factory=RenderConfig)
    resolution: Optional[Tuple[int, int]] = None
    bulk_workers: int = 4
    bulk_retries: int = 2
    download_all: bool = False
    launch_lock: bool = True

    @classmethod
    def from_sources(cls, args: Any = None, settings: Any = None) -> "LockConfig":
        """Layer defaults, persisted overrides and CLI flags into one value.

        Args:
            args: argparse namespace (or any object with matching attributes)
            settings: SettingsManager holding persisted overrides

        Raises:
            FatalConfigError: when any layer supplies an invalid value
        """
        config = cls()
        if settings is not None:
            config = config._apply_settings(settings)
        if args is not None:
            config = config._apply_args(args)
        config.validate()
        return config

    def _apply_settings(self, settings) -> "LockConfig":
        render_changes = {}
        padding = settings.get_str('render.padding')
        if padding is not None:
            render_changes['padding_pixels'] = _parse_int('render.padding', padding)
        background = settings.get_str('render.background')
        if background is not None:
            render_changes['background_colour'] = background
        font = settings.get_str('render.font')
        if font is not None:
            render_changes['font_family'] = font
        wrap = settings.get_str('render.wrap_width')
        if wrap is not None:
            render_changes['tooltip_wrap_width'] = _parse_int('render.wrap_width', wrap)

        changes = {}
        if render_changes:
            changes['render'] = replace(self.render, **render_changes)
        image_dir = settings.get_str('images.directory')
        if image_dir is not None:
            changes['image_dir'] = Path(image_dir).expanduser()
        program = settings.get_str('lock.program')
        if program is not None:
            changes['lock_program'] = program
        return replace(self, **changes) if changes else self

    def _apply_args(self, args) -> "LockConfig":
        def arg(name):
            return getattr(args, name, None)

        render_changes = {}
        if arg('padding') is not None:
            render_changes['padding_pixels'] = _parse_int('--padding', arg('padding'))
        if arg('background') is not None:
            render_changes['background_colour'] = arg('background')
        if arg('font') is not None:
            render_changes['font_family'] = arg('font')
        if arg('wrap_width') is not None:
            render_changes['tooltip_wrap_width'] = _parse_int('--wrap-width', arg('wrap_width'))

        changes = {}
        if render_changes:
            changes['render'] = replace(self.render, **render_changes)
        if arg('mode') is not None:
            changes['mode'] = _parse_mode(arg('mode'))
        # An explicit path always wins over the selection mode.
        if arg('image') is not None:
            changes['mode'] = SelectionMode.EXPLICIT
            changes['image_path'] = Path(arg('image')).expanduser()
        if arg('verbose') is not None:
            changes['verbose'] = bool(arg('verbose'))
        if arg('lock_program') is not None:
            changes['lock_program'] = arg('lock_program')
        if arg('image_dir') is not None:
            changes['image_dir'] = Path(arg('image_dir')).expanduser()
        if arg('output') is not None:
            changes['output_path'] = Path(arg('output')).expanduser()
        if arg('resolution') is not None:
            changes['resolution'] = parse_size(arg('resolution'))
        if arg('download_all') is not None:
            changes['download_all'] = bool(arg('download_all'))
        if arg('no_lock') is not None:
            changes['launch_lock'] = not arg('no_lock')
        return replace(self, **changes) if changes else self

    def validate(self) -> None:
        """Raise FatalConfigError on values no component could work with."""
        if self.mode is SelectionMode.EXPLICIT and self.image_path is None:
            raise FatalConfigError("Explicit mode requires an image path")
        if self.lock_program not in LOCK_PROGRAMS:
            raise FatalConfigError(
                f"Unknown lock program '{self.lock_program}' (expected one of {', '.join(LOCK_PROGRAMS)})"
            )
        render = self.render
        if render.padding_pixels < 0:
            raise FatalConfigError(f"Padding must not be negative: {render.padding_pixels}")
        if render.tooltip_wrap_width <= 0:
            raise FatalConfigError(f"Wrap width must be positive: {render.tooltip_wrap_width}")
        for name in ('background_colour', 'number_colour', 'caption_colour', 'caption_box_colour'):
            value = getattr(render, name)
            if not QColor(value).isValid():
                raise FatalConfigError(f"Invalid colour for {name}: {value!r}")
        if not 0 <= render.caption_box_alpha <= 255:
            raise FatalConfigError(f"Caption box alpha out of range: {render.caption_box_alpha}")
        if self.bulk_workers < 1:
            raise FatalConfigError(f"Bulk worker count must be at least 1: {self.bulk_workers}")
        if self.bulk_retries < 0:
            raise FatalConfigError(f"Bulk retries must not be negative: {self.bulk_retries}")


def parse_size(text: str) -> Tuple[int, int]:
    """Parse ``WIDTHxHEIGHT`` into a positive ``(width, height)`` tuple."""
    match = _SIZE_PATTERN.match(str(text))
    if not match:
        raise FatalConfigError(f"Invalid resolution {text!r} (expected WIDTHxHEIGHT)")
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        raise FatalConfigError(f"Resolution must be positive: {text!r}")
    return width, height


def _parse_int(name: str, value: Any) -> int:
    try:
        return int(str(value).strip())
    except ValueError:
        raise FatalConfigError(f"{name} must be an integer, got {value!r}") from None


def _parse_mode(value: Any) -> SelectionMode:
    if isinstance(value, SelectionMode):
        return value
    try:
        return SelectionMode(str(value).strip().lower())
    except ValueError:
        raise FatalConfigError(f"Unknown selection mode {value!r}") from None
