"""
Configuration for the H220 kinematics tools.

All values have working defaults; a JSON file only needs the sections it
wants to override.
"""

import json
import os
from dataclasses import dataclass, field, fields, replace
from typing import Dict

from .joint_store import JOINT_LIMITS, JointLimit
from .kinematics import DEFAULT_CONSTANTS, KinematicConstants


@dataclass
class RobotConfig:
    """Configuration for the kinematics engine, joint store and pose suggester."""
    # Robot settings
    robot_model: str = "H220"
    constants: KinematicConstants = DEFAULT_CONSTANTS
    joint_limits: Dict[str, JointLimit] = field(default_factory=lambda: dict(JOINT_LIMITS))

    # Pose suggester settings
    suggester_model: str = "gemini-2.5-flash"
    suggester_endpoint: str = "https://generativelanguage.googleapis.com/v1beta"
    api_key_env: str = "API_KEY"  # environment variable holding the API key
    suggester_timeout: float = 30.0  # seconds

    @classmethod
    def from_json(cls, config_file: str) -> 'RobotConfig':
        """
        Load configuration from JSON file.

        Args:
            config_file: Path to JSON configuration file

        Returns:
            RobotConfig instance
        """
        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        with open(config_file, 'r') as f:
            config_data = json.load(f)

        config = cls()

        # Update robot settings
        robot_config = config_data.get('robot', {})
        config.robot_model = robot_config.get('model', config.robot_model)
        constant_names = {f.name for f in fields(KinematicConstants)}
        overrides = {k: float(v) for k, v in robot_config.items() if k in constant_names}
        config.constants = replace(config.constants, **overrides)

        # Update joint limits
        for axis, limit in config_data.get('joint_limits', {}).items():
            if axis not in config.joint_limits:
                raise ValueError(f"Unknown joint axis in joint_limits: {axis}")
            current = config.joint_limits[axis]
            config.joint_limits[axis] = JointLimit(
                float(limit.get('min', current.min)),
                float(limit.get('max', current.max)),
            )

        # Update pose suggester settings
        suggester_config = config_data.get('suggester', {})
        config.suggester_model = suggester_config.get('model', config.suggester_model)
        config.suggester_endpoint = suggester_config.get('endpoint', config.suggester_endpoint)
        config.api_key_env = suggester_config.get('api_key_env', config.api_key_env)
        config.suggester_timeout = float(suggester_config.get('timeout', config.suggester_timeout))

        return config
