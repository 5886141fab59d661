"""
Publisher - Moves compiled APKs into the public download directory

The public directory is the only resource shared between concurrent builds.
File names are derived from app name and version; when that name is
already taken the build id is appended, so two sessions never write the
same file.
"""
import logging
import os
import re
import shutil
from pathlib import Path
from urllib.parse import quote

from builder.schemas import BuildArtifact

logger = logging.getLogger(__name__)


def public_apk_name(app_name: str, version_name: str, suffix: str = "") -> str:
    """Deterministic file name, e.g. "Acme App" + "2.1" -> Acme_App_v2.1.apk"""
    base = re.sub(r"\s+", "_", app_name.strip())
    base = re.sub(r"[^A-Za-z0-9._-]", "", base).strip(".") or "app"
    version = re.sub(r"[^A-Za-z0-9._-]", "", version_name) or "0"
    tail = f"_{suffix}" if suffix else ""
    return f"{base}_v{version}{tail}.apk"


class Publisher:
    """Publishes APKs under a flat, collision-free namespace"""

    def __init__(self, public_dir: Path, download_prefix: str = "/download"):
        self.public_dir = Path(public_dir)
        self.download_prefix = download_prefix.rstrip("/")

    def _reserve(self, app_name: str, version_name: str, build_id: str) -> Path:
        """Atomically claim a file name in the public directory"""
        self.public_dir.mkdir(parents=True, exist_ok=True)
        for suffix in ("", build_id[:8], build_id):
            target = self.public_dir / public_apk_name(app_name, version_name, suffix)
            try:
                fd = os.open(target, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            except FileExistsError:
                logger.info(f"[Publisher] {target.name} already published, trying another name")
                continue
            os.close(fd)
            return target
        raise FileExistsError(f"No free artifact name for build {build_id}")

    def publish(
        self,
        apk_path: Path,
        app_name: str,
        version_name: str,
        build_id: str,
        base_url: str
    ) -> BuildArtifact:
        """
        Move a compiled APK into the public directory

        Args:
            apk_path: Compiled APK inside the session workspace
            app_name: Application display name
            version_name: Version name (e.g. "2.1")
            build_id: Session id, used to disambiguate name collisions
            base_url: Scheme and host the download URL is built from

        Returns:
            BuildArtifact with its public path and download URL
        """
        target = self._reserve(app_name, version_name, build_id)
        try:
            shutil.move(str(apk_path), str(target))
        except OSError:
            target.unlink(missing_ok=True)
            raise

        download_url = f"{base_url.rstrip('/')}{self.download_prefix}/{quote(target.name)}"
        logger.info(f"[Publisher] Published {target.name} -> {download_url}")
        return BuildArtifact(file_name=target.name, path=target.resolve(), download_url=download_url)


__all__ = ["Publisher", "public_apk_name"]
