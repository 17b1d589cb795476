import os
import requests
import tarfile
import shutil
import sys
import contextlib
from ..cli_logger import logger

# -------------------- Helpers: safe paths & extraction --------------------

def _safe_join(base, *paths):
    """Safely join paths, preventing path traversal attacks."""
    base = os.path.abspath(base)
    final = os.path.abspath(os.path.join(base, *paths))
    if not final.startswith(base + os.sep) and final != base:
        raise IOError(f"Unsafe path detected: {final}")
    return final

def _safe_extract_tar(tar_ref: tarfile.TarFile, dest_dir: str, log_each=False):
    """Safely extract a tar file, preventing path traversal attacks."""
    for member in tar_ref.getmembers():
        member_path = _safe_join(dest_dir, member.name)
        if member.isdir():
            os.makedirs(member_path, exist_ok=True)
            continue
        os.makedirs(os.path.dirname(member_path), exist_ok=True)
        if log_each:
            logger.step_info(f"extracting: {member.name}", indent=2)
        src = tar_ref.extractfile(member)
        if src is None:
            # links and special files are not needed from a source archive
            continue
        with src as src_file:
            with open(member_path, "wb") as out:
                shutil.copyfileobj(src_file, out)
        if member.mode:
            os.chmod(member_path, member.mode)


def extract(filepath, dest_dir):
    """Extracts a tar archive into dest_dir and removes the archive. Returns dest_dir or None."""
    os.makedirs(dest_dir, exist_ok=True)
    filename = os.path.basename(filepath)

    try:
        if not tarfile.is_tarfile(filepath):
            logger.warning(f"Unsupported archive type for {filename}. Skipping extraction.")
            return None
        with tarfile.open(filepath, 'r:*') as tar:
            _safe_extract_tar(tar, dest_dir)

        with contextlib.suppress(OSError):
            os.remove(filepath)

        logger.success(f"Successfully extracted to {dest_dir}")
        return dest_dir

    except (tarfile.TarError, IOError) as e:
        logger.error(f"Error during extraction: {e}")
        return None

# -------------------- Download & Extract --------------------

def download_and_extract(url, dest_dir, filename=None, timeout=60):
    """Download and extract a file to a destination directory."""
    os.makedirs(dest_dir, exist_ok=True)
    if filename is None:
        filename = url.split('/')[-1]
    filepath = os.path.join(dest_dir, filename)

    temp_filepath = filepath + ".tmp"

    try:
        with requests.get(url, stream=True, timeout=timeout) as r:
            r.raise_for_status()
            total_size = int(r.headers.get('content-length', 0))

            with open(temp_filepath, 'wb') as f:
                chunks = logger.progress(
                    r.iter_content(chunk_size=1024 * 256),  # 256KB chunks
                    description=f"Downloading {filename}",
                    total=total_size,
                    unit="b"
                )
                for chunk in chunks:
                    if chunk:  # keep-alive chunks may be empty
                        f.write(chunk)

        os.replace(temp_filepath, filepath)

        logger.step_info(f"Archive:  {filename}")

        return extract(filepath, dest_dir)

    except requests.exceptions.RequestException as e:
        logger.error(f"Error downloading the file: {e}")
        with contextlib.suppress(OSError):
            if os.path.exists(temp_filepath):
                os.remove(temp_filepath)
        return None
    except OSError as e:
        logger.error(f"An unexpected error occurred while saving {filename}: {e}")
        logger.exception(*sys.exc_info())
        return None
