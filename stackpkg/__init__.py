"""stackpkg: fetch, verify and install prebuilt stack packages.

Resolves a platform-specific artifact name for ``name-version``, reuses a
cached archive or downloads it from the release channel (falling back to
the distribution-less name), checks the archive and its SHA-256, extracts
it and hands it to the external installer. Afterwards it normalizes
permissions and records the artifact in the installed-packages ledger.
"""

__version__ = "0.2.0"
__description__ = "Package acquisition and installation pipeline for prebuilt stacks"

from stackpkg.core.pipeline import AcquisitionPipeline

__all__ = ["AcquisitionPipeline", "__version__"]
