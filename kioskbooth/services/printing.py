import asyncio
import logging
import shutil
from typing import Optional

from kioskbooth.config import settings

logger = logging.getLogger(__name__)


class PrintService:
    """Sends finished frames to a CUPS printer through ``lp``."""

    def __init__(self, printer_name: str = "", copies: int = 1, lp_path: Optional[str] = None):
        self.printer_name = printer_name
        self.copies = max(1, copies)
        self.lp_path = lp_path or shutil.which("lp")

    @property
    def enabled(self) -> bool:
        return bool(self.printer_name) and self.lp_path is not None

    async def print_file(self, path: str) -> bool:
        if self.lp_path is None:
            logger.warning("lp not found, cannot print %s", path)
            return False

        cmd = [self.lp_path, "-n", str(self.copies)]
        if self.printer_name:
            cmd += ["-d", self.printer_name]
        cmd.append(path)

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
            )
            _, stderr = await proc.communicate()
        except OSError as e:
            logger.error("Print of %s failed: %s", path, e)
            return False

        if proc.returncode != 0:
            logger.error("lp exited with %s: %s", proc.returncode, stderr.decode(errors="replace").strip())
            return False

        logger.info("Printed %s", path)
        return True


print_service = PrintService(settings.printer_name, settings.print_copies)
