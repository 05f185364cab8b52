"""Writing rendered artifacts to disk with a single-generation backup."""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from servermanager.core.errors import PersistenceError
from servermanager.core.models import ApplyStage, RenderedArtifact

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"


def backup_path(path: str | Path) -> Path:
    path = Path(path)
    return path.with_name(path.name + BACKUP_SUFFIX)


async def exists(path: str | Path) -> bool:
    """Whether a file or directory exists."""
    return await aiofiles.os.path.exists(str(path))


class ConfigWriter:
    """
    Persists rendered configuration.

    Before a file is overwritten its current content is copied to
    ``<path>.bak``, replacing any earlier backup.
    """

    async def ensure_directory(self, path: str | Path) -> None:
        """Create a directory and its parents if missing."""
        try:
            await aiofiles.os.makedirs(str(path), exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create directory {path}: {e}")
            raise PersistenceError(
                f"Failed to create directory {path}: {e.strerror or e}",
                path=str(path),
                stage=ApplyStage.WRITE,
            ) from e

    async def backup(self, path: str | Path) -> Path | None:
        """Copy an existing file to its .bak sibling. Returns the backup path."""
        if not await aiofiles.os.path.isfile(str(path)):
            return None

        target = backup_path(path)
        try:
            async with aiofiles.open(path, "rb") as src:
                data = await src.read()
            async with aiofiles.open(target, "wb") as dst:
                await dst.write(data)
        except OSError as e:
            logger.error(f"Failed to back up {path}: {e}")
            raise PersistenceError(
                f"Failed to back up {path}: {e.strerror or e}",
                path=str(path),
                stage=ApplyStage.WRITE,
            ) from e

        logger.debug(f"Backed up {path} to {target}")
        return target

    async def write(self, artifact: RenderedArtifact) -> Path:
        """Back up, then write one artifact."""
        path = Path(artifact.path)
        await self.ensure_directory(path.parent)
        await self.backup(path)

        try:
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(artifact.content)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise PersistenceError(
                f"Failed to write {path}: {e.strerror or e}",
                path=str(path),
                stage=ApplyStage.WRITE,
            ) from e

        logger.info(f"Wrote {path}")
        return path

    async def write_all(self, artifacts: list[RenderedArtifact]) -> list[Path]:
        """
        Write artifacts in order, stopping at the first failure.

        Files written before the failure stay in place.
        """
        written = []
        for artifact in artifacts:
            written.append(await self.write(artifact))
        return written
