import logging
import re
import shutil
import subprocess
from pathlib import Path

_DRIVE_RE = re.compile(r'^([A-Za-z]):[\\/]')


def is_windows_path(raw: str) -> bool:
    return bool(_DRIVE_RE.match(raw))


def translate_root(raw: str) -> Path:
    """
    Accepts a POSIX path, or a Windows drive path such as C:\\Users\\me\\Music
    when running under WSL. Drive paths go through `wslpath` if it is
    installed, else the default /mnt/<drive>/ mount is assumed.
    """
    if not is_windows_path(raw):
        return Path(raw)

    if shutil.which('wslpath'):
        try:
            out = subprocess.check_output(['wslpath', '-u', raw], stderr=subprocess.DEVNULL, text=True)
            return Path(out.strip())
        except (subprocess.CalledProcessError, OSError) as e:
            logging.debug(f"wslpath failed for {raw!r}: {e}")

    drive = raw[0].lower()
    rest = raw[3:].replace('\\', '/').strip('/')
    return Path(f"/mnt/{drive}") / rest if rest else Path(f"/mnt/{drive}")
