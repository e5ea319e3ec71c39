"""
ComicLock - Main Entry Point

Picks a comic, composites it for the largest connected display and hands the
result to i3lock or swaylock.
"""
import argparse
import os
import sys
from typing import List, Optional

from PySide6.QtGui import QGuiApplication

from core.errors import FatalConfigError, LockProgramError, TransformIntegrityError
from core.logging.logger import get_logger, setup_logging
from core.settings.config import LOCK_PROGRAMS, LockConfig, SelectionMode
from core.settings.settings_manager import SettingsManager
from engine.lock_engine import LockEngine
from versioning import APP_DESCRIPTION, APP_EXE_NAME, APP_NAME, APP_ORGANIZATION, APP_VERSION

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_LOCK_FAILED = 2


def build_parser() -> argparse.ArgumentParser:
    """Command-line interface; every option overrides the persisted settings."""
    parser = argparse.ArgumentParser(prog=APP_EXE_NAME, description=APP_DESCRIPTION)
    parser.add_argument('-m', '--mode', choices=[SelectionMode.RANDOM.value, SelectionMode.LATEST.value],
                        default=None, help="image selection mode (default: random)")
    parser.add_argument('-i', '--image', default=None,
                        help="use this image file instead of selecting one")
    parser.add_argument('-v', '--verbose', action='store_true', default=None,
                        help="debug logging, echoed to the console")
    parser.add_argument('-l', '--lock-program', choices=LOCK_PROGRAMS, default=None,
                        help="lock program to launch (default: i3lock)")
    parser.add_argument('-d', '--image-dir', default=None,
                        help="directory for random selection and bulk downloads")
    parser.add_argument('-p', '--padding', default=None,
                        help="pixels removed from each screen axis for the comic box")
    parser.add_argument('-b', '--background', default=None,
                        help="canvas background colour (name or #rrggbb)")
    parser.add_argument('-f', '--font', default=None,
                        help="font family for the number and caption")
    parser.add_argument('-w', '--wrap-width', default=None,
                        help="caption wrap width in characters")
    parser.add_argument('-r', '--resolution', default=None,
                        help="composite for WIDTHxHEIGHT instead of querying displays")
    parser.add_argument('-o', '--output', default=None,
                        help="where to write the finished composite")
    parser.add_argument('--download-all', action='store_true', default=None,
                        help="download every comic into the image directory and exit")
    parser.add_argument('--no-lock', action='store_true', default=None,
                        help="build the composite and print its path without locking")
    parser.add_argument('--version', action='version', version=f"{APP_NAME} {APP_VERSION}")
    return parser


def _has_display() -> bool:
    return bool(os.environ.get('DISPLAY') or os.environ.get('WAYLAND_DISPLAY'))


def create_application(config: LockConfig) -> QGuiApplication:
    """
    Qt application used for painting and screen enumeration.

    Without a display server (or when the resolution is overridden) the
    offscreen platform plugin is selected so painting still works headless.
    """
    existing = QGuiApplication.instance()
    if existing is not None:
        return existing
    if config.resolution is not None or config.download_all or not _has_display():
        os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')
    app = QGuiApplication([APP_EXE_NAME])
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(APP_ORGANIZATION)
    app.setApplicationVersion(APP_VERSION)
    logger.debug("Qt application created (platform=%s)", app.platformName())
    return app


def run(config: LockConfig, engine: Optional[LockEngine] = None) -> int:
    """
    Execute one run for an already-built configuration.

    Returns:
        Process exit code
    """
    engine = engine or LockEngine(config)

    if config.download_all:
        report = engine.download_all()
        print(f"{report.downloaded} downloaded, {report.skipped} skipped, {report.failed} failed")
        return EXIT_OK

    result = engine.run()
    if not config.launch_lock:
        print(result.path)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for ComicLock."""
    args = build_parser().parse_args(argv)

    try:
        config = LockConfig.from_sources(args, SettingsManager())
    except FatalConfigError as e:
        print(f"{APP_EXE_NAME}: {e}", file=sys.stderr)
        return EXIT_FATAL

    setup_logging(verbose=config.verbose)
    logger.info("=" * 60)
    logger.info("%s %s starting (mode=%s)", APP_NAME, APP_VERSION, config.mode.value)
    logger.info("=" * 60)

    create_application(config)

    exit_code = EXIT_OK
    try:
        exit_code = run(config)
    except (FatalConfigError, TransformIntegrityError) as e:
        logger.error("Fatal: %s", e)
        print(f"{APP_EXE_NAME}: {e}", file=sys.stderr)
        exit_code = EXIT_FATAL
    except LockProgramError as e:
        logger.error("Lock program failed: %s", e)
        print(f"{APP_EXE_NAME}: {e}", file=sys.stderr)
        exit_code = EXIT_LOCK_FAILED

    logger.info("%s exiting (code=%d)", APP_NAME, exit_code)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
