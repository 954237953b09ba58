"""Filesystem Gateway - Infrastructure implementation of FileSystemProtocol."""

from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath

from spec_style_linter.domain.constants import DEFAULT_EXCLUDE_DIRS
from spec_style_linter.domain.protocols import FileSystemProtocol


class FileSystemGateway(FileSystemProtocol):
    """Infrastructure implementation of FileSystemProtocol using pathlib."""

    def is_directory(self, path: str) -> bool:
        """Check if path is a directory."""
        return Path(path).is_dir()

    def is_file(self, path: str) -> bool:
        """Check if path is a regular file."""
        return Path(path).is_file()

    def collect_files(
        self, path: str, include: tuple[str, ...], exclude: tuple[str, ...]
    ) -> list[str]:
        """
        Spec files under path, sorted.

        A file given directly is always returned unless an exclude glob matches
        it. Directories are searched with the include globs; anything inside a
        default excluded directory (.git, vendor, ...) is skipped. Excludes are
        matched against the same path in both cases: the path as reached from
        the argument (spec/legacy/old_spec.rb when scanning spec).
        """
        root = Path(path)
        if root.is_file():
            return [] if self.is_excluded(root.as_posix(), exclude) else [str(root)]
        if not root.is_dir():
            return []

        found: set[str] = set()
        for pattern in include:
            for candidate in root.glob(pattern):
                if not candidate.is_file():
                    continue
                relative = candidate.relative_to(root)
                if any(part in DEFAULT_EXCLUDE_DIRS for part in relative.parts[:-1]):
                    continue
                if self.is_excluded(candidate.as_posix(), exclude):
                    continue
                found.add(str(candidate))
        return sorted(found)

    @staticmethod
    def is_excluded(path: str, exclude: tuple[str, ...]) -> bool:
        """
        Match a posix path against exclude globs.

        A glob matches the whole path or any trailing run of its components, so
        spec/legacy/** applies whether the run started from the project root,
        from spec/ or from an absolute path. A leading '**/' also matches at the top.
        """
        parts = [part for part in PurePosixPath(path).parts if part != "/"]
        candidates = {path} | {"/".join(parts[i:]) for i in range(len(parts))}
        for pattern in exclude:
            for candidate in candidates:
                if fnmatchcase(candidate, pattern):
                    return True
                if pattern.startswith("**/") and fnmatchcase(candidate, pattern[3:]):
                    return True
        return False

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """Read a file as text."""
        return Path(path).read_text(encoding=encoding)
