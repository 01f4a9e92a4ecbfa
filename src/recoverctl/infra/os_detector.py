"""Infrastructure: thin OS / vendor detection adapter.

Reads :mod:`platform` and ``/etc/os-release``.  Distribution specific
quirks are left to the distribution config files themselves.
"""

from __future__ import annotations

import platform

from recoverctl.core.os_identity import OsIdentity

_ARCH_FAMILIES = {
    "x86_64": "i386",
    "i686": "i386",
    "i586": "i386",
    "i386": "i386",
    "aarch64": "arm64",
    "armv7l": "arm",
    "ppc64le": "ppc64le",
    "ppc64": "ppc64",
    "s390x": "s390",
}


class PlatformOsDetector:
    """Concrete :class:`~recoverctl.core.protocols.OsDetector`."""

    def detect(self) -> OsIdentity:
        system = platform.system()
        machine = platform.machine()
        try:
            release = platform.freedesktop_os_release()
        except OSError:
            release = {}

        vendor = release.get("ID", "")
        version = release.get("VERSION_ID", "")
        like = release.get("ID_LIKE", "").split()
        return OsIdentity(
            arch=f"{system}-{_ARCH_FAMILIES.get(machine, machine)}" if system else "",
            machine=machine,
            os="GNU/Linux" if system == "Linux" else system,
            master_vendor=like[0] if like else vendor,
            master_version=version,
            vendor=vendor,
            version=version,
        )
