import asyncio
import os

from collections.abc import Iterable
from subprocess import CalledProcessError

from log import logger


async def ww2ogg(wem: str, ogg: str, ww2ogg_path: str, pcb_path: str):
    proc = await asyncio.create_subprocess_exec(
        *[ww2ogg_path, wem, "-o", ogg, "--pcb", pcb_path],
        stdout = asyncio.subprocess.DEVNULL,
        stderr = asyncio.subprocess.PIPE
    )

    _, stderr = await proc.communicate()

    if proc.returncode != 0:
        logger.error(stderr.decode(errors="replace"))

    return proc.returncode


async def revorb(ogg: str, revorb_path: str):
    proc = await asyncio.create_subprocess_exec(
        *[revorb_path, ogg],
        stdout = asyncio.subprocess.DEVNULL,
        stderr = asyncio.subprocess.PIPE
    )

    _, stderr = await proc.communicate()

    if proc.returncode != 0:
        logger.error(stderr.decode(errors="replace"))

    return proc.returncode


async def convert_wem_to_ogg(wem: str, ww2ogg_path: str, revorb_path: str, pcb_path: str):
    """
    Convert, revorb and remove the .wem once both steps succeed.

    @exception
    - CalledProcessError
    - OSError
    """
    if not os.path.exists(wem):
        raise OSError(f"Wem file {wem} does not exists.")

    ogg = f"{os.path.splitext(wem)[0]}.ogg"

    rcode = await ww2ogg(wem, ogg, ww2ogg_path, pcb_path)
    if rcode != 0:
        raise CalledProcessError(rcode, f"{ww2ogg_path} {wem}")

    rcode = await revorb(ogg, revorb_path)
    if rcode != 0:
        raise CalledProcessError(rcode, f"{revorb_path} {ogg}")

    os.remove(wem)

    return ogg


async def convert_wem_to_ogg_batch(
    wems: Iterable[str],
    ww2ogg_path: str,
    revorb_path: str,
    pcb_path: str,
    max_workers: int = 0
):
    """
    @return
    - (# of converted files, [(wem, error)] of the ones that failed)
    """
    wems = list(wems)
    limit = asyncio.Semaphore(max_workers if max_workers > 0 else (os.cpu_count() or 1))

    async def convert(wem: str):
        async with limit:
            return await convert_wem_to_ogg(wem, ww2ogg_path, revorb_path, pcb_path)

    results = await asyncio.gather(
        *[convert(wem) for wem in wems],
        return_exceptions = True
    )

    failures: list[tuple[str, BaseException]] = []
    for wem, result in zip(wems, results):
        if isinstance(result, (CalledProcessError, OSError)):
            logger.error(f"Failed to convert {wem}: {result}")
            failures.append((wem, result))
        elif isinstance(result, BaseException):
            raise result

    return len(wems) - len(failures), failures


def check_tools(ww2ogg_path: str, revorb_path: str, pcb_path: str):
    """
    @exception
    - OSError: the first missing tool
    """
    for path in (ww2ogg_path, revorb_path, pcb_path):
        if not os.path.isfile(path):
            raise OSError(f"Can't find {path}")
