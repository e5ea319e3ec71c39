"""Tests for LockConfig layering and validation."""
from argparse import Namespace
from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from core.errors import FatalConfigError
from core.settings import storage_paths
from core.settings.config import LockConfig, RenderConfig, SelectionMode, parse_size


def _args(**overrides):
    fields = dict(
        mode=None, image=None, verbose=None, lock_program=None, image_dir=None,
        padding=None, background=None, font=None, wrap_width=None, resolution=None,
        output=None, download_all=None, no_lock=None,
    )
    fields.update(overrides)
    return Namespace(**fields)


class TestDefaults:
    def test_defaults(self, isolated_storage):
        config = LockConfig.from_sources()
        assert config.mode is SelectionMode.RANDOM
        assert config.lock_program == "i3lock"
        assert config.render == RenderConfig()
        assert config.render.padding_pixels == 100
        assert config.render.background_colour == "#ffffff"
        assert config.render.tooltip_wrap_width == 100
        assert config.image_dir == isolated_storage / "pictures" / "xkcd"
        assert config.output_path == storage_paths.get_cache_dir() / "lockscreen.png"
        assert config.resolution is None
        assert config.launch_lock

    def test_frozen(self):
        config = LockConfig()
        with pytest.raises(FrozenInstanceError):
            config.verbose = True


class TestLayering:
    def test_settings_override_defaults(self, settings_manager):
        settings_manager.set('render.padding', 40)
        settings_manager.set('render.background', '#202020')
        settings_manager.set('lock.program', 'swaylock')
        settings_manager.set('images.directory', '/srv/comics')

        config = LockConfig.from_sources(settings=settings_manager)

        assert config.render.padding_pixels == 40
        assert config.render.background_colour == '#202020'
        assert config.lock_program == 'swaylock'
        assert config.image_dir == Path('/srv/comics')

    def test_args_override_settings(self, settings_manager):
        settings_manager.set('render.padding', 40)
        settings_manager.set('lock.program', 'swaylock')

        config = LockConfig.from_sources(_args(padding='12', lock_program='i3lock'), settings_manager)

        assert config.render.padding_pixels == 12
        assert config.lock_program == 'i3lock'

    def test_explicit_image_wins_over_mode(self, tmp_path):
        config = LockConfig.from_sources(_args(mode='latest', image=str(tmp_path / 'a.png')))
        assert config.mode is SelectionMode.EXPLICIT
        assert config.image_path == tmp_path / 'a.png'

    def test_latest_mode(self):
        assert LockConfig.from_sources(_args(mode='latest')).mode is SelectionMode.LATEST

    def test_resolution_and_flags(self, tmp_path):
        config = LockConfig.from_sources(_args(
            resolution='1920x1080', no_lock=True, download_all=True, verbose=True,
            output=str(tmp_path / 'lock.png'), wrap_width='60', font='DejaVu Sans',
        ))
        assert config.resolution == (1920, 1080)
        assert not config.launch_lock
        assert config.download_all
        assert config.verbose
        assert config.output_path == tmp_path / 'lock.png'
        assert config.render.tooltip_wrap_width == 60
        assert config.render.font_family == 'DejaVu Sans'


class TestValidation:
    def test_non_integer_padding(self):
        with pytest.raises(FatalConfigError, match="integer"):
            LockConfig.from_sources(_args(padding='wide'))

    def test_non_integer_padding_in_settings(self, settings_manager):
        settings_manager.set('render.padding', 'lots')
        with pytest.raises(FatalConfigError):
            LockConfig.from_sources(settings=settings_manager)

    def test_negative_padding(self):
        with pytest.raises(FatalConfigError):
            LockConfig.from_sources(_args(padding='-5'))

    def test_unknown_lock_program(self, settings_manager):
        settings_manager.set('lock.program', 'xscreensaver')
        with pytest.raises(FatalConfigError, match="lock program"):
            LockConfig.from_sources(settings=settings_manager)

    def test_invalid_colour(self):
        with pytest.raises(FatalConfigError, match="colour"):
            LockConfig.from_sources(_args(background='not-a-colour'))

    def test_unknown_mode(self):
        with pytest.raises(FatalConfigError):
            LockConfig.from_sources(_args(mode='oldest'))

    def test_explicit_without_path(self):
        with pytest.raises(FatalConfigError):
            LockConfig(mode=SelectionMode.EXPLICIT).validate()


@pytest.mark.parametrize("text,expected", [
    ("1920x1080", (1920, 1080)),
    (" 800 X 600 ", (800, 600)),
])
def test_parse_size(text, expected):
    assert parse_size(text) == expected


@pytest.mark.parametrize("text", ["1920", "axb", "0x1080", "1920x0", "-1x5"])
def test_parse_size_rejects(text):
    with pytest.raises(FatalConfigError):
        parse_size(text)
