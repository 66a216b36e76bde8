import platform
import os
import stat
import logging

logger = logging.getLogger(__name__)


def set_owner_only_permissions(filepath: str) -> bool:
    """
    Restrict a file to read/write by its owner (0600).
    On Windows the file inherits the per-user profile ACL and is left as is.
    """
    if platform.system() == 'Windows':
        logger.debug(f"Skipping chmod for {filepath} on Windows; relying on profile ACL.")
        return True
    try:
        os.chmod(filepath, stat.S_IRUSR | stat.S_IWUSR)
    except OSError as e:
        logger.warning(f"Failed to set owner-only permissions for {filepath}: {e}")
        return False
    return True


def ensure_private_dir(path: str) -> None:
    """Create ``path`` (mode 0700) if it is missing."""
    os.makedirs(path, mode=0o700, exist_ok=True)
