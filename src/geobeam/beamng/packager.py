"""Zip packaging of an assembled mod folder.

Entry names are relative to the folder's parent, so the archive root holds
the mod folder itself (``generated_map/info.json``, ...). Directory entries
are written explicitly. Modification times outside the zip range
(1980-2107) are clamped, so copied assets with epoch mtimes still pack.
"""

import os
import zipfile
from pathlib import Path

import structlog

from ..errors import PackagingFailure


logger = structlog.get_logger(__name__)


def _check_inside(path: Path, root: Path) -> None:
    if not path.resolve().is_relative_to(root):
        raise PackagingFailure(f"{path} resolves outside {root}")


def pack_directory(source_dir: Path, archive_path: Path) -> Path:
    """Pack a directory tree into a deflate-compressed zip.

    Args:
        source_dir: Mod folder to pack
        archive_path: Destination zip path (must not be inside source_dir)

    Returns:
        Path to the written archive

    Raises:
        PackagingFailure: On I/O error or an entry resolving outside the tree
    """
    source_dir = Path(source_dir)
    archive_path = Path(archive_path)
    if not source_dir.is_dir():
        raise PackagingFailure(f"Not a directory: {source_dir}")

    tree_root = source_dir.resolve()
    name_root = tree_root.parent
    if archive_path.resolve().is_relative_to(tree_root):
        raise PackagingFailure(f"Archive {archive_path} would be written inside {source_dir}")

    entries = 0
    try:
        with zipfile.ZipFile(
            archive_path, "w", compression=zipfile.ZIP_DEFLATED, strict_timestamps=False
        ) as zf:
            zf.write(tree_root, tree_root.name + "/")
            for dirpath, dirnames, filenames in os.walk(tree_root):
                dirnames.sort()
                current = Path(dirpath)
                for name in dirnames:
                    path = current / name
                    _check_inside(path, tree_root)
                    zf.write(path, path.relative_to(name_root).as_posix() + "/")
                    entries += 1
                for name in sorted(filenames):
                    path = current / name
                    _check_inside(path, tree_root)
                    zf.write(path, path.relative_to(name_root).as_posix())
                    entries += 1
    except PackagingFailure:
        archive_path.unlink(missing_ok=True)
        raise
    except OSError as e:
        archive_path.unlink(missing_ok=True)
        raise PackagingFailure(f"Failed to write archive {archive_path}: {e}") from e

    logger.info("mod_packed", archive=str(archive_path), entries=entries)
    return archive_path
