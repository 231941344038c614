"""
Chat session that moves the robot from free-text requests.

Owns the conversation history and forwards each request to a PoseSuggester.
Accepted suggestions are applied through the JointStateStore so they get the
same filtering and clamping as manual edits.
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

from .joint_store import JointStateStore
from .pose_suggester import InvalidSuggestionError, PoseSuggester, SuggestionError
from .pose_utils import JointState

GREETING = ('Hello! I am your AI Robotics Copilot. Ask me to move the robot '
            '(e.g., "Move to welding position" or "Wave hello").')
ERROR_REPLY = "Error connecting to AI service. Make sure API Key is configured."
NO_POSE_REPLY = "I couldn't calculate a valid pose for that request. Please try again."


@dataclass(frozen=True)
class ChatMessage:
    role: str  # 'user', 'assistant' or 'system'
    content: str
    is_error: bool = False


class CopilotSession:
    """Conversation state plus the pose-suggestion round trip."""

    def __init__(self, store: JointStateStore, suggester: PoseSuggester):
        self.store = store
        self.suggester = suggester
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._messages: List[ChatMessage] = [ChatMessage('system', GREETING)]

    @property
    def messages(self) -> List[ChatMessage]:
        with self._lock:
            return list(self._messages)

    def _append(self, message: ChatMessage) -> ChatMessage:
        with self._lock:
            self._messages.append(message)
        return message

    def submit(self, text: str) -> Optional[ChatMessage]:
        """
        Handle one user request.

        Args:
            text: Free-text intent; blank input is ignored

        Returns:
            The assistant reply, or None if the input was blank
        """
        text = text.strip()
        if not text:
            return None
        self._append(ChatMessage('user', text))

        try:
            target = self.suggester.suggest_pose(self.store.joints, text)
        except InvalidSuggestionError as e:
            self.logger.warning(f"Unusable pose suggestion: {e}")
            return self._append(ChatMessage('assistant', NO_POSE_REPLY, is_error=True))
        except SuggestionError as e:
            self.logger.warning(f"Pose suggestion failed: {e}")
            return self._append(ChatMessage('assistant', ERROR_REPLY, is_error=True))

        applied = self.store.set_joints(target)
        return self._append(ChatMessage('assistant', describe_move(applied)))


def describe_move(joints: JointState) -> str:
    return ("Moving robot to requested position.\n"
            f"Target: J1:{joints.j1:g}°, J2:{joints.j2:g}°, J3:{joints.j3:g}°...")
