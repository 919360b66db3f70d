import os
import platform
import posixpath
import sys

import fileutil

from const import PCB_FILE_NAME, UTILS_RELATIVE_PATH
from log import logger


DIR = fileutil.to_posix(os.path.dirname(os.path.abspath(__file__)))
if getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS"):
    DIR = fileutil.to_posix(os.path.dirname(sys.argv[0]))

SYSTEM = platform.system()

WW2OGG = ""
REVORB = ""

match SYSTEM:
    case "Windows":
        WW2OGG = "ww2ogg.exe"
        REVORB = "revorb.exe"
    case "Linux" | "Darwin":
        WW2OGG = "ww2ogg"
        REVORB = "revorb"
    case _:
        logger.warning(f"Unrecognised system {SYSTEM}. Assuming POSIX tool names.")
        WW2OGG = "ww2ogg"
        REVORB = "revorb"


def get_utils_path(utils_path: str = ""):
    """
    @return
    - POSIX path of the directory holding ww2ogg, revorb and the codebooks.
    `utils_path` wins when given, otherwise `utils/` next to the program.
    """
    if utils_path != "":
        return fileutil.to_posix(utils_path)
    return posixpath.join(DIR, UTILS_RELATIVE_PATH)


def get_tool_paths(utils_path: str = ""):
    """
    @return
    - (ww2ogg, revorb, packed codebooks)
    """
    utils = get_utils_path(utils_path)
    return (
        posixpath.join(utils, WW2OGG),
        posixpath.join(utils, REVORB),
        posixpath.join(utils, PCB_FILE_NAME),
    )
