# Version advisories for CVE-2025-55182 (React Server Components remote code
# execution): which react / next releases are affected and what to upgrade to.

from __future__ import annotations

import re
from typing import Optional

CVE_2025_55182 = "CVE-2025-55182"

REACT_PATCHED = {
    "19.0": "19.0.1",
    "19.1": "19.1.2",
    "19.2": "19.2.1",
}
REACT_DEFAULT_PATCHED = "19.2.1"

NEXT_PATCHED = {
    "15.0": "15.0.5",
    "15.1": "15.1.9",
    "15.2": "15.2.6",
    "15.3": "15.3.6",
    "15.4": "15.4.8",
    "15.5": "15.5.5",
    "16.0": "16.0.2",
    "16.1": "16.1.0",
    "16.2": "16.2.1",
}

# Packages that ship the React server runtime and follow React's version numbers.
REACT_PACKAGES = frozenset(
    {
        "react",
        "react-dom",
        "react-server-dom-webpack",
        "react-server-dom-parcel",
        "react-server-dom-turbopack",
    }
)

_RANGE_CHARS = re.compile(r"[\^~>=<]")
_RANGE_PREFIX = re.compile(r"^[\^~>=<\s]*")
_LEADING_INT = re.compile(r"^\s*[+-]?\d+")


def _leading_int(text: str) -> Optional[int]:
    """Integer prefix of text (so "1-canary" is 1), or None when there is none."""
    m = _LEADING_INT.match(text)
    return int(m.group(0)) if m else None


def clean_version(version: str) -> str:
    return _RANGE_CHARS.sub("", version)


def range_prefix(version: str) -> str:
    """The range operator a version spec starts with: "^", "~", ">=" or ""."""
    return _RANGE_PREFIX.match(version).group(0).strip()


def _major_minor(version: str) -> str:
    return ".".join(clean_version(version).split(".")[:2])


def is_vulnerable_react_version(version: Optional[str]) -> bool:
    """
    True for 19.x specs below the patched release of their minor line.

    Open-ended lower bounds (">19.0.0") are not treated as vulnerable.
    """
    if not version or not isinstance(version, str):
        return False
    if ">" in version and ">=" not in version:
        return False
    parts = clean_version(version).split(".")
    if len(parts) < 2:
        return False
    major = _leading_int(parts[0])
    minor = _leading_int(parts[1])
    patch = _leading_int(parts[2] if len(parts) > 2 else "0")
    if major is None or minor is None or major != 19:
        return False
    patched = REACT_PATCHED.get(f"{major}.{minor}")
    if patched is None or patch is None:
        return False
    return patch < int(patched.split(".")[2])


def patched_react_version(version: str) -> str:
    return REACT_PATCHED.get(_major_minor(version), REACT_DEFAULT_PATCHED)


def is_vulnerable_next_version(version: Optional[str]) -> bool:
    if not version or not isinstance(version, str):
        return False
    patched = NEXT_PATCHED.get(_major_minor(version))
    if patched is None:
        return False
    parts = clean_version(version).split(".")
    current = _leading_int(parts[2] if len(parts) > 2 else "0")
    if current is None:
        return False
    return current < int(patched.split(".")[2])


def patched_next_version(version: str) -> Optional[str]:
    return NEXT_PATCHED.get(_major_minor(version))


def advisory_for(package: str, version: str) -> Optional[str]:
    """
    Return the patched version to upgrade to, or None if package@version is not
    affected.
    """
    if package in REACT_PACKAGES:
        return patched_react_version(version) if is_vulnerable_react_version(version) else None
    if package == "next":
        return patched_next_version(version) if is_vulnerable_next_version(version) else None
    return None
