"""
Two-phase progress for a submission: request upload, then response download.
"""

from __future__ import annotations

from dataclasses import dataclass

UPLOAD_WEIGHT = 30.0
DOWNLOAD_WEIGHT = 70.0


def blend(upload_fraction: float, download_fraction: float) -> float:
    """Upload fills 0..30, download fills the remaining 30..100."""
    return UPLOAD_WEIGHT * upload_fraction + DOWNLOAD_WEIGHT * download_fraction


def _fraction(done: int, total: int | None) -> float | None:
    if not total or total <= 0:
        return None
    return min(max(done / total, 0.0), 1.0)


@dataclass(slots=True)
class PhaseCounter:
    fraction: float = 0.0

    def update(self, done: int, total: int | None) -> None:
        """Advance the phase; unknown totals leave it where it is."""
        fraction = _fraction(done, total)
        if fraction is not None and fraction > self.fraction:
            self.fraction = fraction


@dataclass(slots=True)
class SubmissionProgress:
    """Non-decreasing progress value in [0, 100] for one submission."""

    upload: PhaseCounter
    download: PhaseCounter
    _value: float = 0.0

    @classmethod
    def start(cls) -> "SubmissionProgress":
        return cls(upload=PhaseCounter(), download=PhaseCounter())

    @property
    def value(self) -> float:
        return self._value

    def on_upload(self, sent: int, total: int | None) -> float:
        self.upload.update(sent, total)
        return self._advance()

    def on_download(self, received: int, total: int | None) -> float:
        self.download.update(received, total)
        return self._advance()

    def complete(self) -> float:
        self._value = 100.0
        return self._value

    def _advance(self) -> float:
        blended = min(blend(self.upload.fraction, self.download.fraction), 100.0)
        if blended > self._value:
            self._value = blended
        return self._value
