#!/usr/bin/env python3
"""
H220 Pose Calculator

Computes the flange pose for a joint state and prints it next to the joint
angles, in the same Cartesian / Joint layout as the robot controller.
Optionally asks the pose suggester for a joint state first.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

import numpy as np

from h220_kinematics.config import RobotConfig
from h220_kinematics.joint_store import JointStateStore
from h220_kinematics.kinematics import calibration_residuals, planar_reach, reach_branch
from h220_kinematics.pose_suggester import GeminiPoseSuggester, SuggestionError
from h220_kinematics.pose_utils import AXIS_ALIASES, JOINT_NAMES, JointState, Pose, pose_to_T


def format_pose_table(joints: JointState, pose: Pose) -> str:
    """Render the controller-style Cartesian / Joint grid."""
    cartesian = [('X', pose.x, 1), ('Y', pose.y, 1), ('Z', pose.z, 1),
                 ('Rx', pose.rx, 2), ('Ry', pose.ry, 2), ('Rz', pose.rz, 2)]
    lines = [f"{'Cartesian':<20} | {'Joint':<20}", "-" * 43]
    for (label, value, digits), name in zip(cartesian, JOINT_NAMES):
        code = AXIS_ALIASES[name][0]
        angle = getattr(joints, name)
        lines.append(f"{label:<3}{value:>17.{digits}f} | {code:<3}{angle:>17.2f}")
    return "\n".join(lines)


def format_calibration_report(config: RobotConfig) -> str:
    lines = [f"{'Reading':<10} {'dX':>9} {'dZ':>9} {'|d|':>9} {'dRy':>7}  Branch"]
    for residual in calibration_residuals(config.constants):
        branch = residual.branch.value
        if not residual.branch_matches:
            branch += f" (controller: {residual.reading.branch.value})"
        lines.append(
            f"{residual.reading.name:<10} {residual.dx:>9.1f} {residual.dz:>9.1f} "
            f"{residual.position_error:>9.1f} {residual.ry_error:>7.2f}  {branch}"
        )
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    parser = argparse.ArgumentParser(
        description="Hyundai H220 forward kinematics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --joints 0 90 0 0 -90 0
  %(prog)s --joints 0 155 0 0 0 0 --matrix
  %(prog)s --suggest "move to welding position"
  %(prog)s --calibration
        """
    )

    parser.add_argument(
        '--joints', '-j',
        nargs=6, type=float, metavar=('S', 'H', 'V', 'R2', 'B', 'R1'),
        help='Joint angles J1..J6 in degrees (default: initial L-shape pose)'
    )

    parser.add_argument(
        '--config', '-c',
        help='Path to robot configuration file (default: built-in H220 values)'
    )

    parser.add_argument(
        '--suggest', '-s',
        metavar='TEXT',
        help='Ask the pose suggester for a joint state before computing the pose'
    )

    parser.add_argument(
        '--matrix',
        action='store_true',
        help='Also print the 4x4 homogeneous transform of the pose'
    )

    parser.add_argument(
        '--calibration',
        action='store_true',
        help='Print the model residuals against the controller readings'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger = logging.getLogger(__name__)

    if args.config:
        try:
            config = RobotConfig.from_json(args.config)
        except (OSError, ValueError) as e:
            print(f"Error loading configuration: {e}")
            return 1
        logger.debug(f"Loaded configuration from {os.path.abspath(args.config)}")
    else:
        config = RobotConfig()

    store = JointStateStore(limits=config.joint_limits, constants=config.constants)

    if args.joints is not None:
        store.set_joints(JointState.from_sequence(args.joints))

    if args.suggest:
        suggester = GeminiPoseSuggester.from_config(config)
        try:
            target = suggester.suggest_pose(store.joints, args.suggest)
        except SuggestionError as e:
            print(f"✗ Pose suggestion failed: {e}")
            return 1
        store.set_joints(target)
        print(f"✓ Suggested pose for: {args.suggest}")

    joints = store.joints
    pose = store.pose()
    branch = reach_branch(planar_reach(joints, config.constants))

    print(f"{config.robot_model} ({branch.value} reach)")
    print("=" * 43)
    print(format_pose_table(joints, pose))

    if args.matrix:
        print("\nTransform (mm):")
        with np.printoptions(precision=3, suppress=True):
            print(pose_to_T(pose))

    if args.calibration:
        print("\nCalibration residuals (mm / degrees):")
        print(format_calibration_report(config))

    return 0


if __name__ == "__main__":
    sys.exit(main())
