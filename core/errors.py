"""
Exception hierarchy for ComicLock.

Fatal errors abort the run with a non-zero exit status. Recoverable fetch
errors are caught where a fallback exists (the resolver substitutes the
bundled default image). Per-item download errors only ever surface inside
bulk mode, where they are logged and skipped.
"""


class ComicLockError(Exception):
    """Base class for every error raised by ComicLock."""


class FatalConfigError(ComicLockError):
    """Invalid configuration or a missing required resource."""


class MissingAssetError(FatalConfigError):
    """An image file that must exist does not."""

    def __init__(self, path, message: str = "Image not found"):
        self.path = path
        super().__init__(f"{message}: {path}")


class NoImageFoundError(FatalConfigError):
    """The random-selection pool is empty or cannot be read."""


class CatalogSizeError(FatalConfigError):
    """The current catalog size could not be determined."""


class NoDisplayError(FatalConfigError):
    """No connected display was reported."""


class RecoverableFetchError(ComicLockError):
    """Network failure, timeout or unparseable page while fetching a comic."""


class AnchorNotFoundError(RecoverableFetchError):
    """A fixed textual anchor is missing from the page markup."""

    def __init__(self, anchor: str):
        self.anchor = anchor
        super().__init__(f"Anchor not found in page: {anchor!r}")


class TransformIntegrityError(ComicLockError):
    """A transform stage did not produce its output file."""

    def __init__(self, stage: str, path):
        self.stage = stage
        self.path = path
        super().__init__(f"Stage '{stage}' did not produce {path}")


class PerItemDownloadError(ComicLockError):
    """A single comic failed to download or convert during bulk mode."""

    def __init__(self, number: int, reason: str):
        self.number = number
        self.reason = reason
        super().__init__(f"Comic #{number}: {reason}")


class LockProgramError(ComicLockError):
    """The external lock program could not be started or failed."""

    def __init__(self, program: str, reason: str):
        self.program = program
        super().__init__(f"{program}: {reason}")
