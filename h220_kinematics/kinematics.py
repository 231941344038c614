"""
Closed-form forward kinematics for the Hyundai H220 arm.

The model treats the arm as a planar S-H-V-B chain swung around the base
axis by J1. Link lengths and angular offsets were fit against three
real-controller readings (see ``CALIBRATION_READINGS``). J4 (R2) and J6 (R1)
do not affect position or pitch in this model.

Orientation is reported in one of two frames depending on the sign of the
planar reach ``r_xy``: the front frame (Rx = Rz = 180) while the wrist is in
front of the base column, the flipped back frame (Rx = Rz = 0) once the arm
folds back past it. The switch is a hard one at ``r_xy == 0``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple
import numpy as np

from .pose_utils import JointState, Pose


@dataclass(frozen=True)
class KinematicConstants:
    """Calibrated H220 dimensions (mm) and angular offsets (degrees)."""
    d1: float = 643.0     # base height
    a1: float = 352.0     # J2 axis forward offset
    a2: float = 1075.0    # lower arm
    a3: float = 1210.0    # upper arm
    d4: float = 0.0       # tool length, flange center
    j2_offset_deg: float = 0.0
    j3_offset_deg: float = -90.0  # V=0 is perpendicular to the lower arm


DEFAULT_CONSTANTS = KinematicConstants()

ORIENTATION_EPSILON = 0.001
ORIENTATION_DECIMALS = 2


class ReachBranch(Enum):
    FRONT = 'front'
    BACK = 'back'


def reach_branch(r_xy: float) -> ReachBranch:
    """Orientation frame for a planar reach; zero counts as front."""
    return ReachBranch.FRONT if r_xy >= 0 else ReachBranch.BACK


def _link_angles(joints: JointState,
                 constants: KinematicConstants) -> Tuple[float, float, float]:
    h, v, b = np.deg2rad([joints.j2, joints.j3, joints.j5])
    j2_offset = np.deg2rad(constants.j2_offset_deg)
    j3_offset = np.deg2rad(constants.j3_offset_deg)
    theta2 = h + j2_offset
    theta3 = h + v + j3_offset
    theta4 = h + v + b + j3_offset
    return theta2, theta3, theta4


def _reach(theta2: float, theta3: float, theta4: float,
           constants: KinematicConstants) -> float:
    return float(constants.a1
                 + constants.a2 * np.cos(theta2)
                 + constants.a3 * np.cos(theta3)
                 + constants.d4 * np.cos(theta4))


def planar_reach(joints: JointState,
                 constants: KinematicConstants = DEFAULT_CONSTANTS) -> float:
    """Signed horizontal distance from the base axis to the flange (mm)."""
    theta2, theta3, theta4 = _link_angles(joints, constants)
    return _reach(theta2, theta3, theta4, constants)


def normalize_angle(angle_deg: float) -> float:
    """Wrap an angle into (-180, 180]."""
    wrapped = (angle_deg + 180.0) % 360.0 - 180.0
    if wrapped <= -180.0:
        wrapped += 360.0
    return wrapped


def clean_angle(angle_deg: float) -> float:
    """Round to two decimals, snapping float noise below 0.001 to zero."""
    if abs(angle_deg) < ORIENTATION_EPSILON:
        return 0.0
    # + 0.0 drops the sign of a rounded negative zero
    return round(float(angle_deg), ORIENTATION_DECIMALS) + 0.0


def compute_pose(joints: JointState,
                 constants: KinematicConstants = DEFAULT_CONSTANTS) -> Pose:
    """
    Compute the flange pose for a joint state.

    Args:
        joints: Joint angles in degrees, already clamped by the caller
        constants: Calibration record, defaults to the fitted H220 values

    Returns:
        Pose with position in mm (full precision) and orientation in
        degrees (rounded to 0.01)
    """
    s = np.deg2rad(joints.j1)
    theta2, theta3, theta4 = _link_angles(joints, constants)

    r_xy = _reach(theta2, theta3, theta4, constants)

    x = float(np.cos(s) * r_xy)
    y = float(np.sin(s) * r_xy)
    z = float(constants.d1
              + constants.a2 * np.sin(theta2)
              + constants.a3 * np.sin(theta3)
              + constants.d4 * np.sin(theta4))

    pitch = float(np.rad2deg(theta4))

    if reach_branch(r_xy) is ReachBranch.FRONT:
        rx, rz = 180.0, 180.0
        ry = pitch + 90.0
    else:
        rx, rz = 0.0, 0.0
        ry = 90.0 - pitch

    ry = clean_angle(normalize_angle(ry))
    # rounding can land exactly on the excluded -180 edge
    if ry <= -180.0:
        ry += 360.0

    return Pose(x=x, y=y, z=z, rx=clean_angle(rx), ry=ry, rz=clean_angle(rz))


@dataclass(frozen=True)
class CalibrationReading:
    """A pose read off the real controller for a known joint state."""
    name: str
    joints: JointState
    x: float
    z: float
    ry: float
    branch: ReachBranch


CALIBRATION_READINGS: Tuple[CalibrationReading, ...] = (
    CalibrationReading('vertical', JointState(0.0, 90.0, 0.0, 0.0, -90.0, 0.0),
                       x=1562.0, z=1718.0, ry=0.0, branch=ReachBranch.FRONT),
    CalibrationReading('back-flip', JointState(0.0, 155.0, 0.0, 0.0, 0.0, 0.0),
                       x=-272.0, z=2502.0, ry=25.0, branch=ReachBranch.BACK),
    CalibrationReading('low-reach', JointState(0.0, 10.0, 0.0, 0.0, 0.0, 0.0),
                       x=1877.0, z=-608.0, ry=10.0, branch=ReachBranch.FRONT),
)


@dataclass(frozen=True)
class CalibrationResidual:
    reading: CalibrationReading
    pose: Pose
    branch: ReachBranch

    @property
    def dx(self) -> float:
        return self.pose.x - self.reading.x

    @property
    def dz(self) -> float:
        return self.pose.z - self.reading.z

    @property
    def position_error(self) -> float:
        return float(np.hypot(self.dx, self.dz))

    @property
    def ry_error(self) -> float:
        return self.pose.ry - self.reading.ry

    @property
    def branch_matches(self) -> bool:
        return self.branch is self.reading.branch


def calibration_residuals(constants: KinematicConstants = DEFAULT_CONSTANTS,
                          readings: Tuple[CalibrationReading, ...] = CALIBRATION_READINGS
                          ) -> List[CalibrationResidual]:
    """Evaluate the model against controller readings."""
    residuals = []
    for reading in readings:
        pose = compute_pose(reading.joints, constants)
        branch = reach_branch(planar_reach(reading.joints, constants))
        residuals.append(CalibrationResidual(reading=reading, pose=pose, branch=branch))
    return residuals
