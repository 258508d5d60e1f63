"""
Platform profiles: heading extraction and sign conventions.

Platforms disagree on where the absolute heading lives and on the sign of
the yaw rate. Those differences are resolved once, at engine construction,
from a capability descriptor supplied by the host. The engine never probes
its environment.

Lookup (keyed by ``(has_vendor_compass, absolute_orientation)``):

    ======================  ===================  ===============  ========
    vendor compass field    absolute stream      profile name     heading
    ======================  ===================  ===============  ========
    yes                     (either)             vendor-compass   field
    no                      yes                  absolute-yaw     360 - α
    no                      no                   relative-yaw     360 - α
    ======================  ===================  ===============  ========

A relative-yaw profile has no absolute reference and needs a manual
calibration before its heading means "north".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

import numpy as np

from fieldcompass.errors import ConfigurationError
from fieldcompass.sensors.types import SensorSample
from fieldcompass.utils.angles import heading_from_yaw, normalize_heading


class HeadingSource(Enum):
    """Raw field that supplies the absolute heading.

    Attributes:
        VENDOR_COMPASS: Vendor compass field (already clockwise from north).
        YAW: Converted from alpha as (360 - alpha) mod 360.
    """

    VENDOR_COMPASS = "vendor_compass"
    YAW = "yaw"


@dataclass(frozen=True)
class PlatformCapabilities:
    """
    Capability descriptor supplied by the host.

    Attributes:
        has_vendor_compass: Samples carry a vendor compass heading field.
        absolute_orientation: The orientation stream is referenced to north.
        requires_permission: Sensor access must pass a permission gate.
        gyro_counter_clockwise: Positive yaw rate turns counter-clockwise
                                (opposite to compass headings), so the rate
                                must be sign-flipped before integration.
    """

    has_vendor_compass: bool = False
    absolute_orientation: bool = True
    requires_permission: bool = False
    gyro_counter_clockwise: bool = True

    @classmethod
    def vendor_compass(cls) -> "PlatformCapabilities":
        """Handsets exposing a vendor compass field behind a permission prompt."""
        return cls(
            has_vendor_compass=True,
            absolute_orientation=True,
            requires_permission=True,
        )

    @classmethod
    def absolute_yaw(cls) -> "PlatformCapabilities":
        """Handsets delivering an absolute (north-referenced) yaw."""
        return cls(has_vendor_compass=False, absolute_orientation=True)

    @classmethod
    def relative_yaw(cls) -> "PlatformCapabilities":
        """Devices whose yaw is relative to an arbitrary start direction."""
        return cls(has_vendor_compass=False, absolute_orientation=False)


@dataclass(frozen=True)
class PlatformProfile:
    """
    Resolved heading-extraction and sign conventions.

    Attributes:
        name: Profile name, reported in every snapshot.
        heading_source: Field that supplies the absolute heading.
        absolute: True if headings are north-referenced without calibration.
        gyro_sign: +1 or -1, multiplied into the yaw rate before integration.
        requires_permission: Whether the permission gate must pass first.
    """

    name: str
    heading_source: HeadingSource
    absolute: bool
    gyro_sign: int
    requires_permission: bool

    def __post_init__(self) -> None:
        if self.gyro_sign not in (-1, 1):
            raise ConfigurationError(f"gyro_sign must be +1 or -1, got {self.gyro_sign}")

    def raw_heading(self, sample: SensorSample) -> float:
        """
        Extract the platform heading of a sample.

        Uses the vendor compass field when the profile has one and the
        sample carries a finite value; otherwise converts alpha.

        Args:
            sample: A valid orientation sample.

        Returns:
            Heading in degrees within [0, 360).
        """
        if self.heading_source is HeadingSource.VENDOR_COMPASS:
            compass = sample.compass_heading
            if compass is not None and np.isfinite(compass):
                return normalize_heading(float(compass))
        return heading_from_yaw(float(sample.alpha))

    def yaw_for_heading(self, heading: float) -> float:
        """Inverse of the yaw conversion: heading -> equivalent alpha."""
        return normalize_heading(360.0 - heading)


# (has_vendor_compass, absolute_orientation) -> (name, source, absolute)
_PROFILE_TABLE: Dict[Tuple[bool, bool], Tuple[str, HeadingSource, bool]] = {
    (True, True): ("vendor-compass", HeadingSource.VENDOR_COMPASS, True),
    (True, False): ("vendor-compass", HeadingSource.VENDOR_COMPASS, True),
    (False, True): ("absolute-yaw", HeadingSource.YAW, True),
    (False, False): ("relative-yaw", HeadingSource.YAW, False),
}


def resolve_platform_profile(
    capabilities: Optional[PlatformCapabilities] = None,
) -> PlatformProfile:
    """
    Resolve a platform profile from a capability descriptor.

    Args:
        capabilities: Host capabilities. Defaults to an absolute-yaw device
                      without a permission gate.

    Returns:
        The matching PlatformProfile.

    Example:
        >>> profile = resolve_platform_profile(PlatformCapabilities.vendor_compass())
        >>> profile.name
        'vendor-compass'
        >>> profile.gyro_sign
        -1
    """
    if capabilities is None:
        capabilities = PlatformCapabilities.absolute_yaw()

    name, source, absolute = _PROFILE_TABLE[
        (bool(capabilities.has_vendor_compass), bool(capabilities.absolute_orientation))
    ]

    return PlatformProfile(
        name=name,
        heading_source=source,
        absolute=absolute,
        gyro_sign=-1 if capabilities.gyro_counter_clockwise else 1,
        requires_permission=capabilities.requires_permission,
    )
