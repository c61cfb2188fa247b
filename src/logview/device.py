"""Device liveness check backed by an external lookup binary."""

from __future__ import annotations

import logging
import subprocess

from logview.models import DeviceCheckResult

LOGGER = logging.getLogger(__name__)


def check_device(
    device_name: str,
    *,
    binary: str = "./dht",
    domain_suffix: str = ".heiyu.space",
    timeout: float = 30,
) -> DeviceCheckResult:
    """Run ``binary <device><suffix>`` and report whether the device answered.

    Failures are described in the result; nothing is raised.
    """
    device_name = device_name.strip()
    if not device_name:
        return DeviceCheckResult(success=False, error="Device name must not be empty")

    address = device_name + domain_suffix
    try:
        completed = subprocess.run(
            [binary, address],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        LOGGER.info("Device check for %s timed out after %ss", address, timeout)
        return DeviceCheckResult(
            success=False,
            output=_as_text(exc.stdout),
            error=f"Device check timed out ({timeout:g}s); the device may be offline or unreachable",
        )
    except OSError as exc:
        LOGGER.error("Unable to start device check %s: %s", binary, exc)
        return DeviceCheckResult(success=False, error=f"Failed to start device check: {exc}")

    output = completed.stdout
    if completed.stderr:
        output = completed.stderr + "\n" + output

    if completed.returncode != 0:
        return DeviceCheckResult(
            success=False,
            output=output,
            error="Device check failed; the device may be offline",
        )

    return DeviceCheckResult(
        success=True,
        output=output,
        device_name=device_name,
        device_address=address,
    )


def _as_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
