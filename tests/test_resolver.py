"""Tests for ImageSourceResolver mode dispatch."""
import random
from dataclasses import replace
from unittest.mock import MagicMock

import pytest
import requests

from core.errors import MissingAssetError, NoImageFoundError
from core.settings.config import LockConfig, SelectionMode
from sources.comic.downloader import RemoteComicFetcher
from sources.explicit_source import ExplicitSource
from sources.folder_source import FolderSource
from sources.remote_source import DEFAULT_IMAGE_PATH, LatestComicSource
from sources.resolver import ImageSourceResolver


@pytest.fixture
def base_config(tmp_path):
    return LockConfig(image_dir=tmp_path / "pool", output_path=tmp_path / "out.png")


def test_explicit_mode(base_config, temp_image, tmp_path):
    config = replace(base_config, mode=SelectionMode.EXPLICIT, image_path=temp_image)
    resolver = ImageSourceResolver(config)

    assert isinstance(resolver.provider_for(tmp_path), ExplicitSource)
    assert resolver.resolve(tmp_path).path == temp_image


def test_explicit_missing_path(base_config, tmp_path):
    config = replace(base_config, mode=SelectionMode.EXPLICIT, image_path=tmp_path / "absent.png")
    with pytest.raises(MissingAssetError):
        ImageSourceResolver(config).resolve(tmp_path)


def test_random_mode_uses_image_dir(base_config, tmp_path):
    pool = base_config.image_dir
    pool.mkdir()
    (pool / "xkcd-0010.png").write_bytes(b"x")
    resolver = ImageSourceResolver(base_config, rng=random.Random(0))

    provider = resolver.provider_for(tmp_path)
    resolved = resolver.resolve(tmp_path)

    assert isinstance(provider, FolderSource)
    assert resolved.comic.number == 10
    assert resolved.comic.caption == ""


def test_random_mode_empty_pool(base_config, tmp_path):
    base_config.image_dir.mkdir()
    with pytest.raises(NoImageFoundError):
        ImageSourceResolver(base_config).resolve(tmp_path)


def test_random_mode_does_no_network(base_config, tmp_path):
    base_config.image_dir.mkdir()
    (base_config.image_dir / "a.png").write_bytes(b"x")
    fetcher = MagicMock()

    ImageSourceResolver(base_config, fetcher=fetcher).resolve(tmp_path)

    assert fetcher.mock_calls == []


def test_latest_mode_builds_fetcher(base_config, tmp_path):
    config = replace(base_config, mode=SelectionMode.LATEST)
    provider = ImageSourceResolver(config).provider_for(tmp_path)
    assert isinstance(provider, LatestComicSource)
    assert isinstance(provider._fetcher, RemoteComicFetcher)


def test_latest_mode_unreachable_site_falls_back(base_config, tmp_path):
    session = MagicMock()
    session.headers = {}
    session.get.side_effect = requests.ConnectionError("offline")
    config = replace(base_config, mode=SelectionMode.LATEST)

    resolved = ImageSourceResolver(config, fetcher=RemoteComicFetcher(session=session)).resolve(tmp_path)

    assert resolved.fallback
    assert resolved.path == DEFAULT_IMAGE_PATH


def test_latest_mode_drifted_markup_falls_back(base_config, tmp_path, fixture_page):
    response = MagicMock(status_code=200, text=fixture_page("xkcd_drifted.html"))
    session = MagicMock()
    session.headers = {}
    session.get.return_value = response
    config = replace(base_config, mode=SelectionMode.LATEST)

    resolved = ImageSourceResolver(config, fetcher=RemoteComicFetcher(session=session)).resolve(tmp_path)

    assert resolved.fallback
    assert resolved.path == DEFAULT_IMAGE_PATH
    assert resolved.comic is None
