"""Platform descriptor model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

UNKNOWN = "unknown"


class PlatformDescriptor(BaseModel):
    """Normalized (distribution, architecture) pair for the running host.

    Derived once per run and never mutated. ``distribution`` is the
    ``id-major`` form used in artifact names (``debian-10``).
    """

    model_config = ConfigDict(frozen=True)

    distribution: str = UNKNOWN
    distribution_major_version: str = ""
    architecture: str = UNKNOWN

    @property
    def is_known(self) -> bool:
        return UNKNOWN not in (self.distribution, self.architecture)
