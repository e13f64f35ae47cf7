"""Service for shallow-cloning Git repositories to analyze."""

import asyncio
import logging
import os
import re
import shutil
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


class CloneError(Exception):
    """Error during git clone operation."""
    pass


class CloneService:
    """Clone public repositories into an isolated temp directory."""

    MAX_REPO_SIZE = 500 * 1024 * 1024  # 500MB limit

    URL_PATTERN = re.compile(r"^(?:https?://|ssh://|git@)[\w.@:/~+-]+$")

    def __init__(self, base_dir: str | Path = "/tmp/statelessor/repos", timeout: int = 300):
        self.base_dir = os.path.abspath(base_dir)
        self.timeout = timeout
        os.makedirs(self.base_dir, exist_ok=True)

    def _sanitize_error(self, error: str) -> str:
        """Remove credentials from error messages."""
        return re.sub(r"://[^/@\s]+@", "://[REDACTED]@", error)

    @staticmethod
    def project_name_from_url(url: str) -> str:
        name = url.rstrip("/").split("/")[-1].split(":")[-1]
        if name.endswith(".git"):
            name = name[:-4]
        return name or "repository"

    async def clone_repo(self, repo_url: str) -> str:
        """Clone ``repo_url`` with depth 1 and return the checkout path."""
        if not self.URL_PATTERN.match(repo_url):
            raise CloneError(f"Invalid git URL: {self._sanitize_error(repo_url)}")

        clone_path = os.path.join(
            self.base_dir, f"{self.project_name_from_url(repo_url)}-{uuid.uuid4().hex[:8]}"
        )
        cmd = ["git", "clone", "--depth", "1", "--", repo_url, clone_path]

        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"

        logger.info(f"Cloning {self._sanitize_error(repo_url)} to {clone_path}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except FileNotFoundError as e:
            raise CloneError("git executable not found") from e

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            self.cleanup(clone_path)
            raise CloneError(f"Clone timed out after {self.timeout} seconds")
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            self.cleanup(clone_path)
            raise

        if process.returncode != 0:
            error_msg = stderr.decode("utf-8", errors="replace")
            self.cleanup(clone_path)
            raise CloneError(f"Git clone failed: {self._sanitize_error(error_msg)}")

        repo_size = self._get_dir_size(clone_path)
        if repo_size > self.MAX_REPO_SIZE:
            self.cleanup(clone_path)
            raise CloneError(
                f"Repository too large: {repo_size / 1024 / 1024:.1f}MB "
                f"(max {self.MAX_REPO_SIZE / 1024 / 1024:.0f}MB)"
            )

        return clone_path

    def _get_dir_size(self, path: str) -> int:
        """Get total size of directory in bytes."""
        total = 0
        stack = [path]
        while stack:
            try:
                with os.scandir(stack.pop()) as it:
                    entries = list(it)
            except OSError:
                continue
            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        if entry.name != ".git":
                            stack.append(entry.path)
                    elif entry.is_file(follow_symlinks=False):
                        total += entry.stat(follow_symlinks=False).st_size
                except OSError:
                    continue
        return total

    def cleanup(self, clone_path: str) -> None:
        """Delete a cloned repository."""
        clone_path = os.path.abspath(clone_path) if clone_path else ""
        if not clone_path.startswith(self.base_dir + os.sep):
            logger.warning(f"Refusing to delete path outside clone base: {clone_path}")
            return

        if os.path.exists(clone_path):
            try:
                shutil.rmtree(clone_path)
                logger.info(f"Cleaned up {clone_path}")
            except (OSError, RecursionError) as e:
                logger.error(f"Failed to cleanup {clone_path}: {e}")
