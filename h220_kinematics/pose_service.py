#!/usr/bin/env python3
"""
H220 Pose Web Service

A Flask-based JSON service around the joint-state store, the kinematics
engine and the copilot session. It is the coordinating layer a front end
talks to: it owns the current joint state and chat history and recomputes
the pose on every read.

Endpoints:
- GET  /joints          current joint state and limits
- POST /joints          update one or more axes, e.g. {"j2": 120}
- POST /joints/reset    back to the initial L-shape pose
- GET  /pose            pose of the current joint state
- POST /fk              stateless pose for a full joint state
- GET  /chat            chat history
- POST /chat            {"message": "..."} ask the copilot to move the robot
- GET  /status          service statistics

Usage:
    h220-service --port 8000 --config config/robot_config.json
"""

import argparse
import logging
import math
import sys
import threading
import time
from dataclasses import asdict
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from .config import RobotConfig
from .copilot import CopilotSession
from .joint_store import JointStateStore, clamp_joints
from .kinematics import compute_pose, planar_reach, reach_branch
from .pose_suggester import GeminiPoseSuggester, PoseSuggester
from .pose_utils import JointState


class PoseService:
    """Web service exposing the H220 kinematics."""

    def __init__(self, config: Optional[RobotConfig] = None,
                 suggester: Optional[PoseSuggester] = None,
                 web_port: int = 8000):
        self.config = config or RobotConfig()
        self.web_port = web_port
        self.logger = logging.getLogger(__name__)

        self.store = JointStateStore(limits=self.config.joint_limits,
                                     constants=self.config.constants)
        self.copilot = CopilotSession(self.store,
                                      suggester or GeminiPoseSuggester.from_config(self.config))

        self.app = Flask(__name__)

        self.stats = {
            'joint_updates': 0,
            'values_rejected': 0,
            'suggestions_requested': 0,
            'suggestions_failed': 0,
            'start_time': time.time()
        }
        self.stats_lock = threading.Lock()

        self._setup_routes()

    def _count(self, **increments: int):
        with self.stats_lock:
            for key, amount in increments.items():
                self.stats[key] += amount

    def _pose_payload(self, joints: JointState) -> Dict[str, Any]:
        pose = compute_pose(joints, self.config.constants)
        branch = reach_branch(planar_reach(joints, self.config.constants))
        return {
            'joints': joints.as_dict(),
            'pose': pose.as_dict(),
            'branch': branch.value,
        }

    def _setup_routes(self):
        """Setup Flask routes."""

        @self.app.route('/joints', methods=['GET'])
        def get_joints():
            return jsonify({
                'joints': self.store.joints.as_dict(),
                'limits': {name: asdict(limit) for name, limit in self.store.limits.items()},
            })

        @self.app.route('/joints', methods=['POST'])
        def update_joints():
            data = request.get_json(silent=True)
            if not isinstance(data, dict) or not data:
                return jsonify({'success': False, 'error': 'Expected a JSON object of joint angles'}), 400

            unknown = [axis for axis in data if axis not in self.store.limits]
            if unknown:
                return jsonify({'success': False, 'error': f'Unknown joint axes: {", ".join(unknown)}'}), 400

            joints, rejected = self.store.update_axes(data)
            self._count(joint_updates=1, values_rejected=len(rejected))

            payload = self._pose_payload(joints)
            payload.update({'success': True, 'rejected': rejected})
            return jsonify(payload)

        @self.app.route('/joints/reset', methods=['POST'])
        def reset_joints():
            return jsonify(self._pose_payload(self.store.reset()))

        @self.app.route('/pose', methods=['GET'])
        def get_pose():
            return jsonify(self._pose_payload(self.store.joints))

        @self.app.route('/fk', methods=['POST'])
        def forward_kinematics():
            data = request.get_json(silent=True)
            try:
                joints = JointState.from_dict(data or {})
            except (KeyError, TypeError, ValueError) as e:
                return jsonify({'success': False, 'error': str(e)}), 400
            if not all(math.isfinite(value) for value in joints.as_dict().values()):
                return jsonify({'success': False, 'error': 'Joint angles must be finite'}), 400
            return jsonify(self._pose_payload(clamp_joints(joints, self.store.limits)))

        @self.app.route('/chat', methods=['GET'])
        def get_chat():
            return jsonify({'messages': [asdict(m) for m in self.copilot.messages]})

        @self.app.route('/chat', methods=['POST'])
        def post_chat():
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                return jsonify({'success': False, 'error': 'Expected a JSON object with a message'}), 400
            message = data.get('message')
            if not isinstance(message, str) or not message.strip():
                return jsonify({'success': False, 'error': 'Empty message'}), 400

            reply = self.copilot.submit(message)
            self._count(suggestions_requested=1, suggestions_failed=int(reply.is_error))

            payload = self._pose_payload(self.store.joints)
            payload.update({'success': not reply.is_error, 'reply': asdict(reply)})
            return jsonify(payload)

        @self.app.route('/status')
        def status():
            """Get service status and statistics."""
            with self.stats_lock:
                stats = dict(self.stats)
            uptime = time.time() - stats['start_time']
            return jsonify({
                'robot_model': self.config.robot_model,
                'uptime_seconds': uptime,
                'uptime_formatted': f"{int(uptime // 3600)}h {int((uptime % 3600) // 60)}m",
                'stats': stats,
            })

    def run(self, debug: bool = False):
        """Run the web service."""
        self.logger.info(f"Starting {self.config.robot_model} pose service")
        self.logger.info(f"API: http://0.0.0.0:{self.web_port}")
        try:
            self.app.run(
                host='0.0.0.0',
                port=self.web_port,
                debug=debug,
                threaded=True
            )
        except KeyboardInterrupt:
            self.logger.info("Service stopped by user")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='H220 Pose Web Service')
    parser.add_argument('--config', '-c',
                        help='Path to robot configuration file')
    parser.add_argument('--port', type=int, default=8000,
                        help='Web service port (default: 8000)')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug mode')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = RobotConfig.from_json(args.config) if args.config else RobotConfig()
    except (OSError, ValueError) as e:
        print(f"ERROR: could not load configuration: {e}")
        sys.exit(1)

    service = PoseService(config=config, web_port=args.port)
    service.run(debug=args.debug)


if __name__ == "__main__":
    main()
