"""
Tests for joint limits and the joint-state store.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from h220_kinematics.joint_store import (
    JOINT_LIMITS,
    JointLimit,
    JointStateStore,
    clamp_joints,
)
from h220_kinematics.kinematics import compute_pose
from h220_kinematics.pose_utils import INITIAL_JOINTS, JOINT_NAMES, JointState


class TestClamping:
    """Per-axis clamp rules."""

    def test_limits_cover_every_axis(self):
        assert tuple(JOINT_LIMITS) == JOINT_NAMES
        assert JOINT_LIMITS['j2'] == JointLimit(0.0, 160.0)
        assert JOINT_LIMITS['j3'] == JointLimit(-180.0, 90.0)

    def test_in_range_state_is_unchanged(self, vertical_joints):
        assert clamp_joints(vertical_joints) == vertical_joints

    def test_reclamping_is_idempotent(self):
        once = clamp_joints(JointState(400.0, -10.0, 120.0, -999.0, 181.0, 361.0))
        assert clamp_joints(once) == once

    def test_out_of_range_values_hit_the_bounds(self):
        clamped = clamp_joints(JointState(400.0, -10.0, 120.0, -999.0, 181.0, 361.0))
        assert clamped == JointState(180.0, 0.0, 90.0, -360.0, 180.0, 360.0)

    def test_custom_limits(self):
        limits = dict(JOINT_LIMITS, j2=JointLimit(10.0, 20.0))
        assert clamp_joints(JointState(j2=90.0), limits).j2 == 20.0

    def test_inverted_limit_rejected(self):
        with pytest.raises(ValueError):
            JointLimit(10.0, -10.0)


class TestJointStateStore:
    """Test cases for JointStateStore."""

    def test_starts_at_initial_pose(self, store):
        assert store.joints == INITIAL_JOINTS

    def test_set_axis_clamps(self, store):
        assert store.set_axis('j2', 200.0) is True
        assert store.joints.j2 == 160.0

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf, "abc", None])
    def test_set_axis_discards_invalid(self, store, bad, caplog):
        with caplog.at_level(logging.WARNING, logger='h220_kinematics.joint_store'):
            assert store.set_axis('j3', bad) is False
        assert store.joints == INITIAL_JOINTS
        assert 'Discarding' in caplog.text

    def test_unknown_axis(self, store):
        with pytest.raises(KeyError):
            store.set_axis('j7', 0.0)

    def test_set_joints_keeps_current_value_for_nan_axes(self, store):
        result = store.set_joints(JointState(45.0, math.nan, 500.0, 0.0, 0.0, 0.0))

        assert result == JointState(45.0, 90.0, 90.0, 0.0, 0.0, 0.0)
        assert store.joints == result

    def test_update_axes_reports_rejected(self, store):
        joints, rejected = store.update_axes({'j1': 30.0, 'j2': math.nan, 'j3': 300.0})

        assert rejected == ['j2']
        assert joints == JointState(30.0, 90.0, 90.0, 0.0, -90.0, 0.0)
        assert store.joints == joints

    def test_update_axes_unknown_axis_changes_nothing(self, store):
        with pytest.raises(KeyError):
            store.update_axes({'j1': 30.0, 'j9': 0.0})
        assert store.joints == INITIAL_JOINTS

    def test_update_axes_is_applied_at_once(self, store):
        """A competing write while the update is filtered cannot split it."""
        original_filter = store._filtered
        competing = JointState(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        triggered = []

        def filter_with_competing_write(axis, value):
            if axis == 'j2' and not triggered:
                triggered.append(axis)
                store.set_joints(competing)
            return original_filter(axis, value)

        store._filtered = filter_with_competing_write
        joints, _ = store.update_axes({'j1': 45.0, 'j2': 120.0})

        assert (joints.j1, joints.j2) == (45.0, 120.0)
        assert joints.j5 == 0.0

    def test_reset(self, store):
        store.set_axis('j1', 120.0)
        assert store.reset() == INITIAL_JOINTS
        assert store.joints == INITIAL_JOINTS

    def test_pose_uses_current_joints(self, store):
        store.set_axis('j2', 155.0)
        store.set_axis('j5', 0.0)
        assert store.pose() == compute_pose(JointState(0.0, 155.0, 0.0, 0.0, 0.0, 0.0))

    def test_concurrent_updates_stay_in_range(self, store):
        values = [(-500.0 + i * 7.3) for i in range(200)]

        def update(i):
            axis = JOINT_NAMES[i % 6]
            store.set_axis(axis, values[i])
            return compute_pose(store.joints)

        with ThreadPoolExecutor(max_workers=8) as pool:
            poses = list(pool.map(update, range(len(values))))

        assert len(poses) == len(values)
        assert clamp_joints(store.joints) == store.joints
