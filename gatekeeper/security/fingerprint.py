from __future__ import annotations

import hashlib
import os
import platform
import subprocess


def _win_machine_guid() -> str:
    try:
        import winreg
        key = winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, r"SOFTWARE\Microsoft\Cryptography")
        val, _ = winreg.QueryValueEx(key, "MachineGuid")
        return str(val).strip()
    except (ImportError, OSError):
        return ""


def _linux_machine_id() -> str:
    for p in ("/etc/machine-id", "/var/lib/dbus/machine-id"):
        try:
            with open(p, "r", encoding="utf-8") as f:
                val = f.read().strip()
                if val:
                    return val
        except OSError:
            continue
    return ""


def _mac_platform_uuid() -> str:
    try:
        out = subprocess.check_output(
            ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],
            stderr=subprocess.DEVNULL, text=True, timeout=5,
        )
        # "IOPlatformUUID" = "XXXXXXXX-...."
        for line in out.splitlines():
            if "IOPlatformUUID" in line:
                return line.split("=")[-1].strip().strip('"')
    except (OSError, subprocess.SubprocessError):
        pass
    return ""


def _mac_addr() -> str:
    import uuid
    return f"{uuid.getnode():012x}"


def compute_fingerprint() -> str:
    """Stable per-machine identifier used as the heartbeat's device id."""
    parts = []
    if os.name == "nt":
        parts += [_win_machine_guid(), _mac_addr()]
    elif platform.system() == "Darwin":
        parts += [_mac_platform_uuid(), _mac_addr()]
    else:
        parts += [_linux_machine_id(), _mac_addr()]
    raw = "|".join(x for x in parts if x)
    if not raw:
        raw = "fallback"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def platform_name() -> str:
    return platform.system() or "unknown"
