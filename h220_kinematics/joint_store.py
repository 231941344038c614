"""
Joint-state store.

Owns the current H220 joint state shared by user edits and asynchronous pose
suggestions. Every update passes through the same filter: non-finite values
are discarded and finite values are clamped to the axis limits, so whatever
reaches the kinematics engine is always within range.
"""

import logging
import math
import threading
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from .kinematics import DEFAULT_CONSTANTS, KinematicConstants, compute_pose
from .pose_utils import INITIAL_JOINTS, JOINT_NAMES, JointState, Pose


@dataclass(frozen=True)
class JointLimit:
    min: float
    max: float

    def __post_init__(self):
        if self.min > self.max:
            raise ValueError(f"Joint limit min {self.min} exceeds max {self.max}")

    def clamp(self, value: float) -> float:
        return min(max(value, self.min), self.max)


JOINT_LIMITS: Dict[str, JointLimit] = {
    'j1': JointLimit(-180.0, 180.0),  # S
    'j2': JointLimit(0.0, 160.0),     # H, observed max 155 on the controller
    'j3': JointLimit(-180.0, 90.0),   # V
    'j4': JointLimit(-360.0, 360.0),  # R2
    'j5': JointLimit(-180.0, 180.0),  # B
    'j6': JointLimit(-360.0, 360.0),  # R1
}


def clamp_joints(joints: JointState,
                 limits: Optional[Dict[str, JointLimit]] = None) -> JointState:
    """Clamp every axis of a joint state into its limits."""
    limits = limits or JOINT_LIMITS
    return JointState(**{name: limits[name].clamp(value)
                         for name, value in joints.as_dict().items()})


class JointStateStore:
    """Thread-safe holder of the current joint state."""

    def __init__(self, limits: Optional[Dict[str, JointLimit]] = None,
                 constants: KinematicConstants = DEFAULT_CONSTANTS,
                 initial: JointState = INITIAL_JOINTS):
        self.limits = dict(limits or JOINT_LIMITS)
        self.constants = constants
        self.initial = clamp_joints(initial, self.limits)
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._joints = self.initial

    @property
    def joints(self) -> JointState:
        with self._lock:
            return self._joints

    def _filtered(self, axis: str, value: float) -> Optional[float]:
        if axis not in self.limits:
            raise KeyError(f"Unknown joint axis: {axis}")
        try:
            value = float(value)
        except (TypeError, ValueError):
            self.logger.warning(f"Discarding non-numeric value for {axis}: {value!r}")
            return None
        if not math.isfinite(value):
            self.logger.warning(f"Discarding non-finite value for {axis}: {value}")
            return None
        clamped = self.limits[axis].clamp(value)
        if clamped != value:
            self.logger.debug(f"Clamped {axis} from {value} to {clamped}")
        return clamped

    def set_axis(self, axis: str, value: float) -> bool:
        """
        Update a single axis.

        Args:
            axis: Joint name, 'j1'..'j6'
            value: Requested angle in degrees

        Returns:
            True if the value was accepted (possibly clamped), False if discarded
        """
        clamped = self._filtered(axis, value)
        if clamped is None:
            return False
        with self._lock:
            self._joints = replace(self._joints, **{axis: clamped})
        return True

    def update_axes(self, values: Dict[str, float]) -> Tuple[JointState, List[str]]:
        """
        Apply a partial update to several axes at once.

        Every value is filtered first; the accepted ones are written under a
        single lock, so no other update can land between two axes.

        Args:
            values: Mapping of joint name to requested angle in degrees

        Returns:
            The new joint state and the axes whose values were discarded
        """
        updates = {}
        rejected = []
        for axis, value in values.items():
            clamped = self._filtered(axis, value)
            if clamped is None:
                rejected.append(axis)
            else:
                updates[axis] = clamped
        with self._lock:
            self._joints = replace(self._joints, **updates)
            return self._joints, rejected

    def set_joints(self, joints: JointState) -> JointState:
        """
        Replace the joint state.

        Axes with non-finite values keep their current angle; all others are
        clamped.
        """
        state, _ = self.update_axes(joints.as_dict())
        return state

    def reset(self) -> JointState:
        with self._lock:
            self._joints = self.initial
            return self._joints

    def pose(self) -> Pose:
        return compute_pose(self.joints, self.constants)
