"""Per-device identifiers for online customers."""

import secrets
import string

from barberqueue.utils.timezone import now_ms

_BASE36 = string.digits + string.ascii_lowercase


def generate_device_id() -> str:
    """
    Generate an opaque device identifier like ``dev_1718000000000_k3j9x0qa``.

    Clients persist it and send it back on join so the same phone cannot
    hold two places in line.
    """
    suffix = "".join(secrets.choice(_BASE36) for _ in range(8))
    return f"dev_{now_ms()}_{suffix}"
