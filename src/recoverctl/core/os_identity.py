"""OS / vendor identifiers and the distribution config keys they imply."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from recoverctl.core.models import ConfigValue


@dataclass(frozen=True, slots=True)
class OsIdentity:
    """Identifiers reported by an :class:`~recoverctl.core.protocols.OsDetector`.

    Empty strings mean "unknown"; keys built from unknown parts are
    skipped when distribution config files are looked up.
    """

    arch: str = ""
    """Kernel name plus normalised machine, e.g. ``Linux-i386``."""

    machine: str = ""
    """Raw machine type, e.g. ``x86_64``."""

    os: str = ""
    """OS family, e.g. ``GNU/Linux``."""

    master_vendor: str = ""
    """Vendor family the vendor derives from, e.g. ``Debian``."""

    master_version: str = ""

    vendor: str = ""
    """Actual distribution, e.g. ``Ubuntu``."""

    version: str = ""

    @classmethod
    def from_settings(cls, values: Mapping[str, ConfigValue]) -> OsIdentity:
        """Build an identity from ``ARCH``/``OS``/... settings."""

        def text(name: str) -> str:
            value = values.get(name, "")
            return " ".join(value) if isinstance(value, tuple) else value

        return cls(
            arch=text("ARCH"),
            machine=text("REAL_MACHINE"),
            os=text("OS"),
            master_vendor=text("OS_MASTER_VENDOR"),
            master_version=text("OS_MASTER_VERSION"),
            vendor=text("OS_VENDOR"),
            version=text("OS_VERSION"),
        )

    def as_settings(self) -> dict[str, ConfigValue]:
        """Return the identifiers as configuration settings."""
        return {
            "ARCH": self.arch,
            "REAL_MACHINE": self.machine,
            "OS": self.os,
            "OS_MASTER_VENDOR": self.master_vendor,
            "OS_MASTER_VERSION": self.master_version,
            "OS_VENDOR": self.vendor,
            "OS_VERSION": self.version,
        }

    def distribution_config_keys(self) -> list[str]:
        """Return distribution-scoped config names, least specific first.

        Order: architecture; OS family; master vendor, +arch, +version,
        +version+arch; vendor, +arch, +version, +version+arch.  Keys
        seen earlier in the list are not repeated.
        """
        keys = [_join(self.arch), _join(self.os)]
        for vendor, version in (
            (self.master_vendor, self.master_version),
            (self.vendor, self.version),
        ):
            keys.extend(
                (
                    _join(vendor),
                    _join(vendor, self.machine),
                    _join(vendor, version),
                    _join(vendor, version, self.machine),
                )
            )
        # A vendor that is its own master vendor must not be applied twice.
        return list(dict.fromkeys(key for key in keys if key))


def _join(*parts: str) -> str:
    """Join *parts* with ``/``, or return ``""`` if any part is empty."""
    if not all(parts):
        return ""
    return "/".join(parts)
