"""Download and unpack the experiment data archive."""

import logging
import shutil
import urllib.error
import urllib.request
import zipfile
from pathlib import Path

from ..config import DataConfig

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 60


class DataFetchError(RuntimeError):
    """Raised when the experiment data cannot be downloaded or extracted."""


def _download(url: str, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_name(target.name + ".part")
    req = urllib.request.Request(url, headers={"User-Agent": "carla-tsc"})
    try:
        with (
            urllib.request.urlopen(req, timeout=DOWNLOAD_TIMEOUT) as resp,
            open(partial, "wb") as out,
        ):
            shutil.copyfileobj(resp, out)
    except (urllib.error.URLError, OSError) as e:
        partial.unlink(missing_ok=True)
        raise DataFetchError(f"Failed to download {url}: {e}") from e
    partial.replace(target)


def extract_zip_file(zip_file: Path, output_dir: Path) -> Path:
    """Extract ``zip_file`` into ``output_dir``.

    Entries that would land outside ``output_dir`` are refused.

    Raises:
        DataFetchError: If the archive is corrupt or holds an unsafe entry.
    """
    output_dir = output_dir.resolve()
    try:
        with zipfile.ZipFile(zip_file) as zf:
            for member in zf.infolist():
                destination = (output_dir / member.filename).resolve()
                if not destination.is_relative_to(output_dir):
                    raise DataFetchError(
                        f"Refusing to extract '{member.filename}' outside {output_dir}"
                    )
            zf.extractall(output_dir)
    except zipfile.BadZipFile as e:
        raise DataFetchError(f"Corrupt archive {zip_file}: {e}") from e
    return output_dir


def download_and_unzip_experiments_data(config: DataConfig) -> Path:
    """Make sure the experiment data is available locally.

    Does nothing if the source folder already exists. Otherwise downloads the
    archive (unless it is already present) and extracts it into
    ``config.data_dir``.

    Returns:
        Path of the unpacked source folder.

    Raises:
        DataFetchError: If downloading or extracting fails.
    """
    source_dir = config.source_dir
    if source_dir.exists():
        logger.info("'%s' already exists, skipping download", source_dir)
        return source_dir

    archive = config.archive_file
    if not archive.exists():
        logger.info("Downloading experiment data from %s", config.archive_url)
        _download(config.archive_url, archive)

    if not archive.exists():
        raise DataFetchError(f"After downloading, '{archive}' does not exist")

    logger.info("Extracting %s", archive)
    extract_zip_file(archive, Path(config.data_dir))

    if not source_dir.is_dir():
        raise DataFetchError(
            f"Extracting {archive} did not produce '{config.source_folder}'"
        )
    if not any(source_dir.iterdir()):
        raise DataFetchError(f"Extracted folder '{source_dir}' is empty")
    return source_dir
