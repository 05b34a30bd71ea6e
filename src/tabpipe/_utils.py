'''
Misc internal utilities

'''
import os
from pathlib import Path


def get_project_root() -> Path:
    '''
    Root that relative source & sink paths are resolved against, taken from
    `TABPIPE_ROOT` or the current working directory.

    '''
    return Path(os.getenv('TABPIPE_ROOT', Path.cwd()))


def resolve_path(path: str | Path, root: str | Path | None = None) -> Path:
    path = Path(path).expanduser()
    if path.is_absolute():
        return path

    return (Path(root) if root else get_project_root()) / path


def path_size(path: str | Path) -> int:
    '''
    Return the byte size at the target path, if its a directory it will return
    the sum of all files under all sub-directories.

    '''
    path = Path(path)
    if path.is_file():
        return path.stat().st_size

    return sum(
        (
            subpath.stat().st_size
            for subpath in path.rglob('*')
            if subpath.is_file()
        )
    )
