"""Source file discovery and project type detection."""

import logging
import os
from typing import Optional

from statelessor.analyzers.base import Ecosystem

logger = logging.getLogger(__name__)


class SourceScanner:
    """Enumerate candidate source files for an ecosystem."""

    # Directories to skip, per ecosystem
    SKIP_DIRS: dict[Ecosystem, frozenset[str]] = {
        Ecosystem.DOTNET: frozenset({"node_modules", "bin", "obj", ".git", ".vs", "packages"}),
        Ecosystem.JAVA: frozenset({"node_modules", "target", "build", ".git", ".idea", "out"}),
    }

    DOTNET_MARKERS = (".csproj", ".sln")
    JAVA_MARKERS = frozenset({"pom.xml", "build.gradle"})

    def enumerate_files(self, root_dir: str, ecosystem: Ecosystem | str) -> list[str]:
        """Depth-first list of absolute file paths ending with the ecosystem extension.

        Unreadable directories are logged and skipped, an unreadable root
        yields an empty list. Tree depth is not bounded by the
        recursion limit.
        """
        ecosystem = Ecosystem(ecosystem)
        extension = ecosystem.extension
        skip_dirs = self.SKIP_DIRS[ecosystem]
        files: list[str] = []

        stack = [iter(self._sorted_entries(os.path.abspath(root_dir)))]
        while stack:
            entry = next(stack[-1], None)
            if entry is None:
                stack.pop()
                continue

            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = not is_dir and entry.is_file()
            except OSError as e:
                logger.warning(f"Cannot stat {entry.path}: {e}")
                continue

            if is_dir:
                if entry.name not in skip_dirs:
                    stack.append(iter(self._sorted_entries(entry.path)))
            elif is_file and entry.name.endswith(extension):
                files.append(entry.path)

        return files

    def _sorted_entries(self, directory: str) -> list[os.DirEntry]:
        try:
            with os.scandir(directory) as it:
                return sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.warning(f"Error reading directory {directory}: {e}")
            return []

    def detect_project_type(self, root_dir: str) -> Optional[Ecosystem]:
        """Detect the ecosystem of a tree from its build files.

        Directories are visited depth-first in name order and the first one
        holding a marker decides.
        """
        stack = [root_dir]
        while stack:
            directory = stack.pop()
            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.debug(f"Cannot read {directory} during detection: {e}")
                continue

            names = [e.name for e in entries]
            if any(name.endswith(self.DOTNET_MARKERS) for name in names):
                return Ecosystem.DOTNET
            if any(name in self.JAVA_MARKERS for name in names):
                return Ecosystem.JAVA

            subdirs = []
            for entry in entries:
                if entry.name.startswith("."):
                    continue
                try:
                    if entry.is_dir(follow_symlinks=False):
                        subdirs.append(entry.path)
                except OSError:
                    continue
            # reversed so the first name is visited first
            stack.extend(reversed(subdirs))

        return None
