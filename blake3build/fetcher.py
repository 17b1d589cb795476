import os
from .cli_logger import logger
from .backend import TBB_LINK_TARGET, TBB_PACKAGE
from .utils.dependency_lookup import LookupResult
from .utils.file_manager import download_and_extract

INSTALL_DIR = os.path.join(os.path.expanduser("~"), ".blake3build")
DEPS_DIR = os.path.join(INSTALL_DIR, "deps")

TBB_ARCHIVE_URL = "https://github.com/oneapi-src/oneTBB/archive/refs/tags/v{version}.tar.gz"


def tbb_archive_url(version):
    return TBB_ARCHIVE_URL.format(version=version)


def fetch_tbb(version, deps_dir=DEPS_DIR):
    """
    Downloads the oneTBB sources so they can be built alongside the library.

    Returns:
        LookupResult: a hit for the fetched sources, or a miss when the download failed.
    """
    url = tbb_archive_url(version)
    logger.info(f"  - Fetching oneTBB {version} from {url}...")
    extract_dir = os.path.join(deps_dir, f"oneTBB-{version}")

    if os.path.isdir(os.path.join(extract_dir, f"oneTBB-{version}")):
        logger.info(f"  - oneTBB {version} already fetched to {extract_dir}")
    else:
        extracted_path = download_and_extract(url, extract_dir, f"oneTBB-{version}.tar.gz")
        if not extracted_path:
            logger.error(f"Failed to fetch oneTBB {version}.")
            return LookupResult.not_found()

    source_dir = os.path.join(extract_dir, f"oneTBB-{version}")
    logger.success(f"oneTBB {version} sources available at {source_dir}")
    return LookupResult(found=True, handle=TBB_LINK_TARGET, version=version, location=source_dir)


def fetched_packages(result):
    """Table for a StaticLookup that replays a fetch result as a system hit."""
    if not result.found:
        return {}
    return {TBB_PACKAGE: result}
