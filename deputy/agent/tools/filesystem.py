"""Filesystem tools: list, read and write files within the workspace."""

from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import Any

from loguru import logger

from deputy.agent.tools.base import Tool
from deputy.core.errors import ExecutionFailedError, InvalidArgumentsError
from deputy.core.io import IO
from deputy.utils.helpers import truncate_output

MAX_READ_LENGTH = 20000
PREVIEW_LINES = 20


def resolve_path(path: str, workspace: Path, restrict_to_workspace: bool) -> Path:
    """Resolve a user-supplied path against the workspace."""
    try:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = workspace / candidate
        resolved = candidate.resolve()
    except (OSError, RuntimeError, ValueError) as e:
        raise InvalidArgumentsError(f"invalid path: {path!r}") from e
    if restrict_to_workspace:
        workspace_root = workspace.resolve()
        if resolved != workspace_root and workspace_root not in resolved.parents:
            raise InvalidArgumentsError(f"path is outside workspace: {path}")
    return resolved


def _preview(text: str, max_lines: int = PREVIEW_LINES) -> str:
    lines = text.splitlines()
    if len(lines) <= max_lines:
        return text
    return "\n".join(lines[:max_lines]) + f"\n... ({len(lines) - max_lines} more lines)"


class _WorkspaceTool(Tool):
    def __init__(self, workspace: Path, restrict_to_workspace: bool = True) -> None:
        self.workspace = workspace.expanduser().resolve()
        self.restrict_to_workspace = restrict_to_workspace

    def _resolve(self, path: str) -> Path:
        return resolve_path(path, self.workspace, self.restrict_to_workspace)

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.workspace).as_posix() or "."
        except ValueError:
            return str(path)


class _GitignoreMatcher:
    """Glob-based .gitignore matching for directory listings.

    Patterns are evaluated in order, outer files first, and the last match
    wins, so a later "!pattern" re-includes an earlier exclusion.
    """

    def __init__(self, root: Path, start: Path) -> None:
        self._patterns: list[tuple[Path, str, bool]] = []
        chain = [start]
        while chain[-1] != root and root in chain[-1].parents:
            chain.append(chain[-1].parent)
        for directory in reversed(chain):
            self._load(directory)

    def _load(self, directory: Path) -> None:
        gitignore = directory / ".gitignore"
        if not gitignore.is_file():
            return
        try:
            lines = gitignore.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {gitignore}: {e}")
            return
        for line in lines:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            negated = line.startswith("!")
            if negated:
                line = line[1:]
            if line:
                self._patterns.append((directory, line.lstrip("/"), negated))

    def ignored(self, path: Path) -> bool:
        is_dir = path.is_dir()
        ignored = False
        for base, pattern, negated in self._patterns:
            if pattern.endswith("/") and not is_dir:
                continue
            try:
                rel_path = path.relative_to(base).as_posix()
            except ValueError:
                continue
            clean = pattern.rstrip("/")
            if fnmatch.fnmatch(path.name, clean) or fnmatch.fnmatch(rel_path, clean):
                ignored = not negated
        return ignored


class ListFilesTool(_WorkspaceTool):
    """List directory entries, optionally as a recursive tree."""

    @property
    def name(self) -> str:
        return "list_files_tool"

    @property
    def description(self) -> str:
        return (
            "List files in a directory. The path is relative to the workspace; an empty "
            "path lists the workspace itself. When recursive is true, lists all files and "
            "directories as a tree. Entries ignored by .gitignore are skipped. Hidden "
            "entries (starting with '.') are excluded unless include_hidden is true; only "
            "set it when you have a strong reason to look at hidden files."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Directory path relative to the workspace. Empty for the workspace root.",
                },
                "recursive": {
                    "type": "boolean",
                    "description": "List the whole tree below path. Defaults to false.",
                },
                "include_hidden": {
                    "type": "boolean",
                    "description": "Include entries starting with '.'. Defaults to false.",
                },
            },
            "required": ["path"],
        }

    def permission_id(self, args: Any) -> str:
        self.check_params(args)
        return "list"

    def ask_permission(self, args: Any, io: IO) -> None:
        if self.validate_params(args):
            io.show_message(self.name, "List files (arguments could not be parsed)")
            return
        mode = " recursively" if args.get("recursive") else ""
        io.show_message(self.name, f"List files in '{args['path'] or '.'}'{mode}")

    async def call(self, args: Any, io: IO) -> str:
        self.check_params(args)
        directory = self._resolve(args["path"] or ".")
        if not directory.exists():
            raise ExecutionFailedError(f"directory not found: {args['path']}")
        if not directory.is_dir():
            raise ExecutionFailedError(f"not a directory: {args['path']}")

        matcher = _GitignoreMatcher(self.workspace, directory)
        include_hidden = bool(args.get("include_hidden", False))
        if args.get("recursive"):
            lines = self._tree(directory, 0, matcher, include_hidden)
        else:
            lines = [
                self._entry_line(entry, 0)
                for entry in self._entries(directory, matcher, include_hidden)
            ]
        return "\n".join(lines) if lines else "(empty directory)"

    def _entries(self, directory: Path, matcher: _GitignoreMatcher, include_hidden: bool) -> list[Path]:
        try:
            entries = list(directory.iterdir())
        except OSError as e:
            raise ExecutionFailedError(f"cannot read directory {self._relative(directory)}: {e}") from e
        entries.sort(key=lambda p: (not p.is_dir(), p.name))
        return [
            entry
            for entry in entries
            if (include_hidden or not entry.name.startswith(".")) and not matcher.ignored(entry)
        ]

    def _entry_line(self, entry: Path, depth: int) -> str:
        suffix = "/ (directory)" if entry.is_dir() else ""
        return f"{'  ' * depth}{self._relative(entry)}{suffix}"

    def _tree(self, directory: Path, depth: int, matcher: _GitignoreMatcher, include_hidden: bool) -> list[str]:
        lines: list[str] = []
        for entry in self._entries(directory, matcher, include_hidden):
            lines.append(self._entry_line(entry, depth))
            if entry.is_dir() and not entry.is_symlink():
                lines.extend(self._tree(entry, depth + 1, matcher, include_hidden))
        return lines


class ReadFilesTool(_WorkspaceTool):
    """Read one or more text files, optionally a window of lines."""

    @property
    def name(self) -> str:
        return "read_files"

    @property
    def description(self) -> str:
        return (
            "Read files. Paths are relative to the workspace. Each file is returned as text. "
            "Optionally provide limit and offset to read a window of lines, which is a good "
            "idea to get a quick sense of a file while preserving context space. Never read "
            "a file without first validating that the path exists."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "paths": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Paths of the files to read, relative to the workspace.",
                },
                "limit": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Number of lines to read from each file. Defaults to the whole file.",
                },
                "offset": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Number of lines to skip at the start of each file. Defaults to 0.",
                },
            },
            "required": ["paths"],
        }

    def permission_id(self, args: Any) -> str:
        self.check_params(args)
        return "read"

    def ask_permission(self, args: Any, io: IO) -> None:
        if self.validate_params(args):
            io.show_message(self.name, "Read files (arguments could not be parsed)")
            return
        paths = args["paths"]
        io.show_message(self.name, f"Read {len(paths)} file(s): {', '.join(paths)}")

    async def call(self, args: Any, io: IO) -> str:
        self.check_params(args)
        offset = args.get("offset", 0)
        limit = args.get("limit")
        chunks: list[str] = []
        for path in args["paths"]:
            file_path = self._resolve(path)
            if not file_path.is_file():
                raise ExecutionFailedError(f"file not found: {path}")
            try:
                data = file_path.read_text(encoding="utf-8")
            except UnicodeDecodeError as e:
                raise ExecutionFailedError(f"cannot read binary file: {path}") from e
            except OSError as e:
                raise ExecutionFailedError(f"cannot read {path}: {e}") from e
            lines = data.splitlines()
            end = len(lines) if limit is None else offset + limit
            window = "\n".join(lines[offset:end])
            chunks.append(f"path: {self._relative(file_path)}\ndata: \n{truncate_output(window, MAX_READ_LENGTH)}")
        return "\n".join(chunks)


class WriteFileTool(_WorkspaceTool):
    """Write a whole file, or replace an inclusive range of its lines."""

    @property
    def name(self) -> str:
        return "write_file"

    @property
    def description(self) -> str:
        return (
            "Write or edit a file. The path is relative to the workspace. Without range the "
            "file is replaced by content (parent directories are created). With range, lines "
            "start..end (1-based, inclusive) are replaced by content, which may be shorter or "
            "longer than the original range."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Path of the file to write, relative to the workspace.",
                },
                "content": {
                    "type": "string",
                    "description": "Content to write.",
                },
                "range": {
                    "type": "object",
                    "description": "Lines to replace with content; the whole range is replaced.",
                    "properties": {
                        "start": {"type": "integer", "minimum": 1, "description": "First line; inclusive."},
                        "end": {"type": "integer", "minimum": 1, "description": "Last line; inclusive."},
                    },
                    "required": ["start", "end"],
                },
            },
            "required": ["path", "content"],
        }

    def permission_id(self, args: Any) -> str:
        self.check_params(args)
        return self._relative(self._resolve(args["path"]))

    def ask_permission(self, args: Any, io: IO) -> None:
        if self.validate_params(args):
            io.show_message(self.name, "Write a file (arguments could not be parsed)")
            return
        span = args.get("range")
        if span:
            header = f"Replace lines {span['start']}-{span['end']} of {args['path']} with:"
        else:
            header = f"Write {len(args['content'])} characters to {args['path']}:"
        io.show_message(self.name, f"{header}\n{_preview(args['content'])}")

    async def call(self, args: Any, io: IO) -> str:
        self.check_params(args)
        file_path = self._resolve(args["path"])
        content = args["content"]
        span = args.get("range")
        try:
            if span:
                if span["end"] < span["start"]:
                    raise InvalidArgumentsError("range end must not be before range start")
                if not file_path.is_file():
                    raise ExecutionFailedError(f"cannot edit a missing file: {args['path']}")
                try:
                    lines = file_path.read_text(encoding="utf-8").splitlines()
                except UnicodeDecodeError as e:
                    raise ExecutionFailedError(f"cannot edit binary file: {args['path']}") from e
                lines = lines[: span["start"] - 1] + [content] + lines[span["end"]:]
                content = "\n".join(lines)
            else:
                file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
        except (OSError, UnicodeEncodeError) as e:
            raise ExecutionFailedError(f"failed to write {args['path']}: {e}") from e

        logger.debug(f"WriteFileTool: wrote {len(content)} chars to {file_path}")
        io.show_message(self.name, f"Wrote {len(content)} characters to {self._relative(file_path)}")
        return "File written successfully"
