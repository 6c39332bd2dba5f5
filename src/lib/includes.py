"""
Include resolution for #include and #include_once

Resolves a literal path or glob pattern to content through injectable
file-access and glob-matching capabilities, and memoizes results in the
include cache keyed by the path or pattern exactly as written.
"""

import glob
import os
import re
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from ..models.frames import IncludeResult
from .errors import IncludeResolutionError
from .log import LOG


GLOB_WILDCARD = re.compile(r'[*?\[]')


class FileAccess(Protocol):
    """File-access capability: read a path as bytes (or already decoded text)"""

    def read(self, path: str) -> bytes: ...


class GlobMatcher(Protocol):
    """Glob-expansion capability: matched file paths in stable order"""

    def match(self, pattern: str, base_dir: str) -> List[str]: ...


class LocalFileAccess:
    """Reads files from the local filesystem"""

    def read(self, path: str) -> bytes:
        with open(path, 'rb') as handle:
            return handle.read()


class LocalGlobMatcher:
    """Expands patterns against the local filesystem, `**` included"""

    def match(self, pattern: str, base_dir: str) -> List[str]:
        matches = glob.glob(os.path.join(base_dir, pattern), recursive=True)
        return sorted(path for path in matches if os.path.isfile(path))


def pattern_is(path: str) -> bool:
    """Whether an include argument is a glob pattern"""
    return GLOB_WILDCARD.search(path) is not None


class IncludeResolver:
    """
    Resolves include arguments to content

    Attributes:
        base_dir: Directory literal paths and patterns are resolved against
        cache: Include cache, path or pattern as written -> content
        preloaded: Includes supplied up front, restored by cache_clear()
        file_access: File-access capability
        glob_matcher: Glob-expansion capability
        encoding: Encoding for bytes returned by file_access
        separator_newline: Newline-separate glob matches lacking a trailing one
    """

    def __init__(
        self,
        base_dir: str = ".",
        includes: Optional[Mapping[str, str]] = None,
        file_access: Optional[FileAccess] = None,
        glob_matcher: Optional[GlobMatcher] = None,
        encoding: str = "utf-8",
        separator_newline: bool = True,
    ) -> None:
        self.base_dir = base_dir
        self.preloaded: Dict[str, str] = dict(includes or {})
        self.cache: Dict[str, str] = dict(self.preloaded)
        self.file_access: FileAccess = file_access if file_access is not None else LocalFileAccess()
        self.glob_matcher: GlobMatcher = glob_matcher if glob_matcher is not None else LocalGlobMatcher()
        self.encoding = encoding
        self.separator_newline = separator_newline

    def resolve(self, key: str) -> IncludeResult:
        """
        Resolve a path or glob pattern to content

        The cache is consulted first. On a miss, a glob pattern is expanded
        and its matches concatenated in the matcher's (sorted) order, zero
        matches yielding empty content; a literal path is read relative to
        base_dir. The result is cached under key.

        Args:
            key: Unescaped include argument

        Returns:
            IncludeResult with content and the paths read

        Raises:
            IncludeResolutionError: If a file cannot be read or decoded
        """
        is_glob = pattern_is(key)
        if key in self.cache:
            LOG(f"Include cache hit: {key}", level=3)
            return IncludeResult(key=key, content=self.cache[key], cached=True, isGlob=is_glob)

        if is_glob:
            paths = list(self.glob_matcher.match(key, self.base_dir))
            content = self.contents_concat(paths)
        else:
            paths = [os.path.join(self.base_dir, key)]
            content = self.file_read(paths[0])

        LOG(f"Include cache miss: {key} -> {len(paths)} file(s)", level=3)
        self.cache[key] = content
        return IncludeResult(key=key, content=content, paths=paths, isGlob=is_glob)

    def file_read(self, path: str) -> str:
        try:
            data = self.file_access.read(path)
        except OSError as e:
            raise IncludeResolutionError(path, str(e)) from e
        if isinstance(data, str):
            return data
        try:
            return data.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise IncludeResolutionError(path, str(e)) from e

    def contents_concat(self, paths: Sequence[str]) -> str:
        """Concatenate files in order, optionally newline-separated"""
        parts: List[str] = []
        for path in paths:
            if self.separator_newline and parts and parts[-1] and not parts[-1].endswith(('\n', '\r')):
                parts.append('\n')
            parts.append(self.file_read(path))
        return ''.join(parts)

    def cache_clear(self) -> None:
        """Drop everything loaded so far, keeping the preloaded includes"""
        self.cache = dict(self.preloaded)
