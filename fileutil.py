import os
import pathlib


def to_posix(path: str):
    return pathlib.PurePath(path).as_posix()


def list_files(path: str, ext: str) -> list[str]:
    """
    Non-recursive. Extension match is case insensitive.

    @return
    - Sorted POSIX paths
    """
    if not os.path.isdir(path):
        raise OSError(f"Directory {path} does not exist.")
    ext = ext.lower()
    files = [
        to_posix(os.path.join(path, filename))
        for filename in os.listdir(path)
        if os.path.splitext(filename)[1].lower() == ext
        and os.path.isfile(os.path.join(path, filename))
    ]
    files.sort()
    return files


def stem(path: str):
    return os.path.splitext(os.path.basename(path))[0]
