"""
Joint-state and pose records for the H220 kinematics package.

Provides the dataclasses passed between the joint-state store, the kinematics
engine and its consumers, plus minimal SE3 helpers for turning a Pose into a
rotation matrix or homogeneous transform. All positions are in mm; all angles
are in degrees unless stated otherwise.
"""

from dataclasses import dataclass, astuple
from typing import Dict, Iterable, Tuple
import numpy as np


JOINT_NAMES: Tuple[str, ...] = ('j1', 'j2', 'j3', 'j4', 'j5', 'j6')

# Controller axis codes: S, H, V, R2, B, R1
AXIS_ALIASES: Dict[str, Tuple[str, str]] = {
    'j1': ('S', 'Swivel'),
    'j2': ('H', 'Lower Arm'),
    'j3': ('V', 'Upper Arm'),
    'j4': ('R2', 'Forearm Roll'),
    'j5': ('B', 'Bend'),
    'j6': ('R1', 'Wrist Twist'),
}


@dataclass(frozen=True)
class JointState:
    j1: float = 0.0  # S, degrees
    j2: float = 0.0  # H
    j3: float = 0.0  # V
    j4: float = 0.0  # R2
    j5: float = 0.0  # B
    j6: float = 0.0  # R1

    @classmethod
    def from_sequence(cls, values: Iterable[float]) -> 'JointState':
        """Build a JointState from six angles ordered J1..J6."""
        values = [float(v) for v in values]
        if len(values) != len(JOINT_NAMES):
            raise ValueError(f"Expected 6 joint angles, got {len(values)}")
        return cls(*values)

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> 'JointState':
        missing = [name for name in JOINT_NAMES if name not in data]
        if missing:
            raise KeyError(f"Missing joint angles: {', '.join(missing)}")
        return cls(*(float(data[name]) for name in JOINT_NAMES))

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(JOINT_NAMES, astuple(self)))

    def as_array(self) -> np.ndarray:
        return np.array(astuple(self), dtype=float)


INITIAL_JOINTS = JointState(j1=0.0, j2=90.0, j3=0.0, j4=0.0, j5=-90.0, j6=0.0)


@dataclass(frozen=True)
class Pose:
    x: float = 0.0   # mm
    y: float = 0.0
    z: float = 0.0
    rx: float = 0.0  # degrees
    ry: float = 0.0
    rz: float = 0.0

    @property
    def translation(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    @property
    def rotation(self) -> np.ndarray:
        return np.array([self.rx, self.ry, self.rz], dtype=float)

    def as_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'z': self.z,
                'rx': self.rx, 'ry': self.ry, 'rz': self.rz}


def _axis_rotation(axis: int, angle_deg: float) -> np.ndarray:
    """Rotation about base axis 0 (x), 1 (y) or 2 (z) by angle_deg."""
    j, k = (axis + 1) % 3, (axis + 2) % 3
    cos, sin = np.cos(np.deg2rad(angle_deg)), np.sin(np.deg2rad(angle_deg))
    R = np.eye(3)
    R[j, j], R[j, k] = cos, -sin
    R[k, j], R[k, k] = sin, cos
    return R


def rpy_to_rotation_matrix(rx: float, ry: float, rz: float) -> np.ndarray:
    """Fixed-axis roll/pitch/yaw (degrees) to a 3x3 matrix, R = Rz @ Ry @ Rx."""
    return _axis_rotation(2, rz) @ _axis_rotation(1, ry) @ _axis_rotation(0, rx)


def pose_rotation_matrix(pose: Pose) -> np.ndarray:
    """Tool orientation of a pose in the base frame."""
    return rpy_to_rotation_matrix(*pose.rotation)


def pose_to_T(pose: Pose) -> np.ndarray:
    T = np.eye(4)
    T[:3, :3] = pose_rotation_matrix(pose)
    T[:3, 3] = pose.translation
    return T
