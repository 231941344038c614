"""
Hyundai H220 Kinematics

This package contains the forward-kinematics model of the H220 arm and the
pieces that feed it:
- Closed-form forward kinematics calibrated against controller readings
- Joint-state store with per-axis clamping
- Natural-language pose suggestions
- Copilot chat session
- Pose utilities and configuration
"""

from .config import RobotConfig
from .copilot import ChatMessage, CopilotSession
from .joint_store import JOINT_LIMITS, JointLimit, JointStateStore, clamp_joints
from .kinematics import (
    CALIBRATION_READINGS,
    DEFAULT_CONSTANTS,
    KinematicConstants,
    ReachBranch,
    calibration_residuals,
    compute_pose,
    planar_reach,
    reach_branch,
)
from .pose_suggester import (
    GeminiPoseSuggester,
    InvalidSuggestionError,
    PoseSuggester,
    SuggestionError,
)
from .pose_utils import (
    INITIAL_JOINTS,
    JointState,
    Pose,
    pose_rotation_matrix,
    pose_to_T,
    rpy_to_rotation_matrix,
)

__version__ = "0.1.0"

__all__ = [
    'RobotConfig',
    'ChatMessage',
    'CopilotSession',
    'JOINT_LIMITS',
    'JointLimit',
    'JointStateStore',
    'clamp_joints',
    'CALIBRATION_READINGS',
    'DEFAULT_CONSTANTS',
    'KinematicConstants',
    'ReachBranch',
    'calibration_residuals',
    'compute_pose',
    'planar_reach',
    'reach_branch',
    'GeminiPoseSuggester',
    'InvalidSuggestionError',
    'PoseSuggester',
    'SuggestionError',
    'INITIAL_JOINTS',
    'JointState',
    'Pose',
    'pose_to_T',
    'pose_rotation_matrix',
    'rpy_to_rotation_matrix',
]
