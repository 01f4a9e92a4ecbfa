"""Infrastructure: read configuration layers and resolve them in order.

Precedence, lowest first:

1. ``<SHARE_DIR>/conf/default.conf`` (must exist)
2. ``<CONFIG_DIR>/os.conf``
3. ``<CONFIG_DIR>/<workflow>.conf``
4. OS detection fills ``ARCH``, ``OS``, ``OS_VENDOR``, ... if still unset
5. ``<SHARE_DIR>/conf/<distribution key>.conf`` for each detected key
6. ``<CONFIG_DIR>/site.conf``, ``local.conf``, ``rescue.conf``
7. files requested with ``-C``

Layers 2–6 are optional.  Layer 7 files that cannot be found only
produce a warning, since deployments may provision them later.
"""

from __future__ import annotations

import logging
import os
import platform
from collections.abc import Mapping, Sequence
from pathlib import Path

from recoverctl.core.config_layers import ConfigLayer, LayerKind, apply_layer
from recoverctl.core.models import ConfigValue, Configuration, Invocation
from recoverctl.core.os_identity import OsIdentity
from recoverctl.core.protocols import OsDetector
from recoverctl.exceptions import ConfigurationError
from recoverctl.infra.environment import RuntimeEnvironment
from recoverctl.logging import PRINT

logger = logging.getLogger(__name__)

USER_LAYERS: tuple[str, ...] = ("site", "local", "rescue")

FIXED_AT_STARTUP: frozenset[str] = frozenset({"VAR_DIR", "LOG_DIR", "SHARE_DIR"})
"""Settings fixed before any layer is read, because logging already uses them."""


def _flag(value: bool) -> str:
    return "yes" if value else ""


def seed_settings(
    environment: RuntimeEnvironment,
    invocation: Invocation,
    log_file: Path,
    *,
    workflow: str | None = None,
) -> dict[str, ConfigValue]:
    """Return the values every layer starts from.

    *workflow* is the resolved workflow name when it differs from the
    one given on the command line.
    """
    options = invocation.options
    return {
        "CONFIG_DIR": str(environment.config_dir),
        "VAR_DIR": str(environment.var_dir),
        "LOG_DIR": str(environment.log_dir),
        "SHARE_DIR": str(environment.share_dir),
        "KERNEL_VERSION": options.kernel_version or platform.release(),
        "HOSTNAME": environment.hostname,
        "WORKFLOW": workflow or invocation.workflow,
        "LOGFILE": str(log_file),
        "RECOVERY_MODE": _flag(environment.recovery_mode),
        "VERBOSE": _flag(options.verbose),
        "DEBUG": _flag(options.debug),
        "DEBUGSCRIPTS": _flag(options.debug_trace),
        "SIMULATE": _flag(options.simulate),
        "STEPBYSTEP": _flag(options.step_by_step),
        "KEEP_BUILD_DIR": _flag(options.debug_trace),
    }


class ConfigurationResolver:
    """Apply all configuration layers on top of a seed.

    Parameters
    ----------
    os_detector:
        Any object satisfying the :class:`OsDetector` protocol.
    """

    def __init__(self, os_detector: OsDetector) -> None:
        self._os_detector: OsDetector = os_detector
        self._applied: list[Path] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(
        self,
        seed: Mapping[str, ConfigValue],
        workflow: str,
        append_files: Sequence[str] = (),
    ) -> Configuration:
        """Return the frozen configuration for *workflow*.

        Raises
        ------
        ConfigurationError
            If ``CONFIG_DIR`` is not a directory, the defaults are
            missing, or any layer contains disallowed content.
        """
        self._applied = []
        values: Mapping[str, ConfigValue] = dict(seed)
        config_dir = Path(str(values["CONFIG_DIR"]))
        if not config_dir.is_dir():
            raise ConfigurationError(
                f"CONFIG_DIR {config_dir} is not a directory.",
                hint="Pass an existing directory with -c.",
            )
        share_conf = Path(str(values["SHARE_DIR"])) / "conf"

        values = self._apply(values, ConfigLayer(LayerKind.DEFAULTS, share_conf / "default.conf"))
        values = self._apply(values, self._config_layer(values, "os", LayerKind.OPTIONAL))
        values = self._apply(values, self._config_layer(values, workflow, LayerKind.OPTIONAL))

        values = self._fill_os_identity(values)
        identity = OsIdentity.from_settings(values)
        for key in identity.distribution_config_keys():
            values = self._apply(values, ConfigLayer(LayerKind.OPTIONAL, share_conf / f"{key}.conf"))

        for name in USER_LAYERS:
            values = self._apply(values, self._config_layer(values, name, LayerKind.USER))

        for name in append_files:
            path = self._find_append_file(values, name)
            if path is None:
                logger.warning(
                    "Config file '%s' requested with -C was not found, skipping it", name,
                )
                continue
            values = self._apply(values, ConfigLayer(LayerKind.APPEND, path))

        return Configuration(values, tuple(self._applied))

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    @staticmethod
    def _config_layer(
        values: Mapping[str, ConfigValue],
        name: str,
        kind: LayerKind,
    ) -> ConfigLayer:
        """Layer ``<name>.conf`` in the currently active config directory."""
        return ConfigLayer(kind, Path(str(values["CONFIG_DIR"])) / f"{name}.conf")

    def _apply(
        self,
        values: Mapping[str, ConfigValue],
        layer: ConfigLayer,
    ) -> Mapping[str, ConfigValue]:
        text = self._read(layer)
        if text is None:
            return values
        logger.debug("Sourcing %s config %s", layer.kind.value, layer.path)
        result = apply_layer(
            values,
            text,
            str(layer.path),
            forbid_carriage_return=layer.forbids_carriage_return,
            readonly=FIXED_AT_STARTUP,
        )
        self._applied.append(layer.path)
        if layer.kind is LayerKind.APPEND:
            logger.info("Using additional config file %s", layer.path, extra=PRINT)
        return result

    @staticmethod
    def _read(layer: ConfigLayer) -> str | None:
        """Return the layer text, or ``None`` if an optional layer is absent."""
        try:
            # newline="" keeps carriage returns visible to the parser
            with layer.path.open(encoding="utf-8", newline="") as handle:
                return handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            if layer.kind is LayerKind.DEFAULTS:
                raise ConfigurationError(
                    f"Cannot read built-in defaults {layer.path}: {exc}",
                    hint="Check RECOVERCTL_SHARE_DIR or reinstall recoverctl.",
                ) from exc
            if layer.path.exists():
                logger.debug("Skipping unreadable config %s: %s", layer.path, exc)
            return None

    def _fill_os_identity(
        self,
        values: Mapping[str, ConfigValue],
    ) -> Mapping[str, ConfigValue]:
        """Add detected OS identifiers that no earlier layer has set."""
        detected = self._os_detector.detect().as_settings()
        filled = dict(values)
        for name, value in detected.items():
            if not filled.get(name):
                filled[name] = value
        logger.debug(
            "OS identity: %s",
            ", ".join(f"{name}={filled[name]}" for name in detected),
        )
        return filled

    @staticmethod
    def _find_append_file(values: Mapping[str, ConfigValue], name: str) -> Path | None:
        """Resolve a ``-C`` name: as given, then with ``.conf`` appended."""
        base = Path(name)
        if not base.is_absolute():
            base = Path(str(values["CONFIG_DIR"])) / base
        for candidate in (base, base.with_name(base.name + ".conf")):
            if candidate.is_file() and os.access(candidate, os.R_OK):
                return candidate
        return None
