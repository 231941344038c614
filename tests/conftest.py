"""
Test configuration and shared fixtures for the H220 kinematics tests.
"""

import json
from unittest.mock import Mock

import pytest

from h220_kinematics.joint_store import JointStateStore
from h220_kinematics.pose_suggester import PoseSuggester
from h220_kinematics.pose_utils import JointState


@pytest.fixture
def store():
    """Joint-state store with default H220 limits, at the initial pose."""
    return JointStateStore()


@pytest.fixture
def mock_suggester():
    """Pose suggester that returns a fixed, in-range joint state."""
    suggester = Mock(spec=PoseSuggester)
    suggester.suggest_pose.return_value = JointState(10.0, 45.0, -30.0, 0.0, -60.0, 0.0)
    return suggester


@pytest.fixture
def vertical_joints():
    """Calibration pose 1: lower arm vertical, wrist pointing down."""
    return JointState(0.0, 90.0, 0.0, 0.0, -90.0, 0.0)


@pytest.fixture
def back_flip_joints():
    """Calibration pose 2: lower arm folded back past vertical."""
    return JointState(0.0, 155.0, 0.0, 0.0, 0.0, 0.0)


@pytest.fixture
def low_reach_joints():
    """Calibration pose 3: lower arm nearly horizontal."""
    return JointState(0.0, 10.0, 0.0, 0.0, 0.0, 0.0)


@pytest.fixture
def write_config(tmp_path):
    """Write a JSON config file and return its path."""
    def _write(data):
        path = tmp_path / "robot_config.json"
        path.write_text(json.dumps(data))
        return str(path)
    return _write


@pytest.fixture
def gemini_payload():
    """Build a generateContent response body carrying the given text."""
    def _payload(text):
        return {
            'candidates': [
                {'content': {'role': 'model', 'parts': [{'text': text}]}}
            ]
        }
    return _payload
