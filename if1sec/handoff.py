"""Hand the accumulated cache over to exactly one reader.

The cache is renamed before anything is read. rename(2) is atomic within one
filesystem, so the sampler's next append creates a fresh cache file and the
renamed one is ours alone: no tick is read twice, and none goes missing.
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import BinaryIO

from if1sec.errors import HandoffError

logger = logging.getLogger(__name__)

# Leftovers of a failed stream older than this are dropped on the next fetch.
LEFTOVER_MAX_AGE_S = 3600


def leftover_prefix(cache_file: Path) -> str:
    return f".{Path(cache_file).name}."


def sweep_leftovers(cache_file: Path, max_age_s: float = LEFTOVER_MAX_AGE_S,
                    now: float | None = None) -> list[Path]:
    """Remove handoff files a failed fetch left behind, once they are old.

    Younger ones may still belong to a fetch in progress and stay.
    """
    cache_file = Path(cache_file)
    if now is None:
        now = time.time()
    removed = []
    for path in cache_file.parent.glob(f"{leftover_prefix(cache_file)}*"):
        try:
            if now - path.stat().st_mtime < max_age_s:
                continue
            path.unlink()
        except FileNotFoundError:
            continue
        logger.warning("Dropped undelivered handoff file %s", path)
        removed.append(path)
    return removed


def fetch(cache_file: Path, out: BinaryIO, chunk_size: int = 65535) -> int:
    """Move the cache aside and stream it to ``out``. Returns bytes written.

    A missing cache (sampler has not ticked yet) is not an error; nothing is
    written and 0 is returned.
    """
    cache_file = Path(cache_file)
    sweep_leftovers(cache_file)
    # Same directory as the cache; a temp dir may sit on another filesystem.
    try:
        fd, name = tempfile.mkstemp(prefix=leftover_prefix(cache_file), dir=cache_file.parent)
    except OSError as e:
        raise HandoffError(f"Can not create handoff file next to {cache_file}: {e}") from e
    os.close(fd)
    frozen = Path(name)
    try:
        os.replace(cache_file, frozen)
    except FileNotFoundError:
        frozen.unlink()
        logger.debug("No cache at %s yet, nothing to hand off", cache_file)
        return 0
    except OSError as e:
        frozen.unlink()
        raise HandoffError(f"Can not take over {cache_file}: {e}") from e

    written = 0
    try:
        with open(frozen, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                out.write(chunk)
                written += len(chunk)
        out.flush()
    except OSError as e:
        # Keep what could not be delivered instead of deleting it.
        logger.warning("Undelivered samples kept in %s", frozen)
        raise HandoffError(
            f"Handoff of {cache_file} failed after {written} bytes, left data in {frozen}: {e}"
        ) from e
    frozen.unlink()
    logger.debug("Handed off %d bytes from %s", written, cache_file)
    return written
