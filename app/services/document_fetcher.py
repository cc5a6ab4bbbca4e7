"""
Downloads announcement attachments into the working directory.
"""

import asyncio
from pathlib import Path

import httpx

from app.config import settings
from app.exceptions import DownloadError, WorkingDirectoryError
from app.utils.logger import setup_logger

logger = setup_logger("document_fetcher")

_FILE_NAME_REPLACEMENTS = {" ": "_", "/": "_", "\\": "_", ":": "-"}


def sanitize_file_name(name: str) -> str:
    """Replace characters that are unsafe in file names."""
    for old, new in _FILE_NAME_REPLACEMENTS.items():
        name = name.replace(old, new)
    return name


def ensure_directory(path: str | Path) -> Path:
    directory = Path(path)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WorkingDirectoryError(
            f"failed to create directory {directory}: {e}",
            context={"path": str(directory)},
        ) from e
    return directory


class DocumentFetcher:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = settings.bse_attachment_base_url,
        dest_dir: str | Path = settings.dest_dir,
    ):
        self.http_client = http_client
        self.base_url = base_url
        self.dest_dir = Path(dest_dir)

    def build_url(self, attachment_id: str) -> str:
        return f"{self.base_url}{attachment_id}"

    @staticmethod
    def build_headers() -> dict[str, str]:
        return {
            "User-Agent": settings.bse_user_agent,
            "Referer": "https://www.bseindia.com/",
            "Accept": "application/pdf",
        }

    async def download(self, attachment_id: str, save_as: str) -> Path:
        """
        Stream one attachment to `dest_dir/save_as` and return the local path.

        A partially written file is removed before DownloadError is raised, and
        also when the download is cancelled.
        """
        if not attachment_id:
            raise DownloadError("empty attachment reference")

        url = self.build_url(attachment_id)
        target = self.dest_dir / save_as
        context = {"attachment_id": attachment_id, "url": url}

        written = 0
        try:
            async with self.http_client.stream(
                "GET", url, headers=self.build_headers()
            ) as response:
                if response.status_code != httpx.codes.OK:
                    raise DownloadError(
                        f"failed to download file: status code {response.status_code}",
                        context={**context, "status_code": response.status_code},
                    )
                with open(target, "wb") as out:
                    async for chunk in response.aiter_bytes():
                        out.write(chunk)
                        written += len(chunk)
        except DownloadError:
            _remove_quietly(target)
            raise
        except httpx.HTTPError as e:
            _remove_quietly(target)
            raise DownloadError(
                f"failed to download file: {e}",
                context={**context, "error_type": type(e).__name__},
            ) from e
        except OSError as e:
            _remove_quietly(target)
            raise DownloadError(
                f"failed to write file {target}: {e}", context=context
            ) from e
        except asyncio.CancelledError:
            logger.warning(f"Download of {attachment_id} cancelled, removing {target}")
            _remove_quietly(target)
            raise

        logger.debug(f"Downloaded {attachment_id} to {target} ({written} bytes)")
        return target


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Failed to remove partial file {path}: {e}")
