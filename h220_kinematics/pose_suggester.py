"""
Natural-language pose suggestions.

A PoseSuggester turns free-text intent ("move to welding position") into a
candidate JointState. Results are untrusted: callers must pass them through
the joint-state store, which filters and clamps them like any other input.

The Gemini backend calls the ``generateContent`` REST endpoint with a JSON
response schema that forces six numeric joint angles.
"""

import abc
import json
import logging
import os
from typing import Any, Dict, Optional

import requests

from .joint_store import JOINT_LIMITS, JointLimit
from .pose_utils import AXIS_ALIASES, JOINT_NAMES, JointState

logger = logging.getLogger(__name__)


class SuggestionError(Exception):
    """Raised when a pose suggestion cannot be produced."""


class InvalidSuggestionError(SuggestionError):
    """The service answered, but not with a usable joint state."""


class PoseSuggester(abc.ABC):
    """Capability interface: current state + intent -> candidate joint state."""

    @abc.abstractmethod
    def suggest_pose(self, current: JointState, intent: str) -> JointState:
        """Return a candidate joint state or raise SuggestionError."""


SYSTEM_INSTRUCTION_TEMPLATE = """\
You are an expert roboticist controlling a Hyundai Robotics H220 6-axis industrial robot arm.
This is a heavy-duty robot (220kg payload) typically used for spot welding, heavy handling, and assembly.

The user may refer to axes using standard indices (J1-J6) or H220 aliases:
{aliases}

Current Joint State (Degrees):
{current}

H220 Joint Limits (Degrees):
{limits}

Task:
Return a JSON object containing the target joint angles (j1, j2, j3, j4, j5, j6) for the user's request.

Rules:
1. STRICTLY respect the joint limits.
2. Provide realistic poses. "Home" or "Ready" usually implies J2 (H) at a slight angle and J3 (V) bowing forward.
3. Map axis aliases such as "S axis" or "H" to the corresponding joints J1, J2, etc.
4. Do NOT explain. ONLY return the JSON.
5. If the request is dangerous or impossible, stay as close to the current or a safe state as possible.
"""


def build_system_instruction(current: JointState,
                             limits: Optional[Dict[str, JointLimit]] = None) -> str:
    limits = limits or JOINT_LIMITS
    aliases = "\n".join(
        f"- {name.upper()}: \"{code}\" ({label})"
        for name, (code, label) in AXIS_ALIASES.items()
    )
    limits_json = json.dumps({
        name: {'min': limit.min, 'max': limit.max} for name, limit in limits.items()
    })
    return SYSTEM_INSTRUCTION_TEMPLATE.format(
        aliases=aliases,
        current=json.dumps(current.as_dict()),
        limits=limits_json,
    )


RESPONSE_SCHEMA: Dict[str, Any] = {
    'type': 'OBJECT',
    'properties': {name: {'type': 'NUMBER'} for name in JOINT_NAMES},
    'required': list(JOINT_NAMES),
}


def parse_joint_response(text: str) -> JointState:
    """
    Parse the model's JSON answer into a JointState.

    Raises:
        InvalidSuggestionError: If the text is empty, not JSON, or lacks numeric j1..j6
    """
    if not text or not text.strip():
        raise InvalidSuggestionError("Empty response from pose suggester")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidSuggestionError(f"Pose suggester returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidSuggestionError("Pose suggester returned a non-object JSON value")

    values = {}
    for name in JOINT_NAMES:
        value = data.get(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidSuggestionError(f"Pose suggester returned no numeric value for {name}")
        values[name] = float(value)
    return JointState(**values)


class GeminiPoseSuggester(PoseSuggester):
    """Pose suggester backed by the Gemini generateContent REST API."""

    def __init__(self, api_key: Optional[str],
                 model: str = "gemini-2.5-flash",
                 endpoint: str = "https://generativelanguage.googleapis.com/v1beta",
                 timeout: float = 30.0,
                 limits: Optional[Dict[str, JointLimit]] = None,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint.rstrip('/')
        self.timeout = timeout
        self.limits = dict(limits or JOINT_LIMITS)
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> 'GeminiPoseSuggester':
        return cls(
            api_key=os.environ.get(config.api_key_env),
            model=config.suggester_model,
            endpoint=config.suggester_endpoint,
            timeout=config.suggester_timeout,
            limits=config.joint_limits,
        )

    @property
    def url(self) -> str:
        return f"{self.endpoint}/models/{self.model}:generateContent"

    def build_request(self, current: JointState, intent: str) -> Dict[str, Any]:
        return {
            'systemInstruction': {
                'parts': [{'text': build_system_instruction(current, self.limits)}]
            },
            'contents': [{'role': 'user', 'parts': [{'text': intent}]}],
            'generationConfig': {
                'responseMimeType': 'application/json',
                'responseSchema': RESPONSE_SCHEMA,
            },
        }

    @staticmethod
    def _response_text(payload: Dict[str, Any]) -> str:
        try:
            parts = payload['candidates'][0]['content']['parts']
        except (KeyError, IndexError, TypeError) as e:
            raise InvalidSuggestionError("Pose suggester response has no candidates") from e
        if not isinstance(parts, list):
            raise InvalidSuggestionError("Pose suggester response has no content parts")

        texts = []
        for part in parts:
            if not isinstance(part, dict):
                continue
            text = part.get('text', '')
            if not isinstance(text, str):
                raise InvalidSuggestionError("Pose suggester response part has non-text content")
            texts.append(text)
        return "".join(texts)

    def suggest_pose(self, current: JointState, intent: str) -> JointState:
        if not self.api_key:
            logger.error("Gemini API key is missing")
            raise SuggestionError("API key is missing. Please check your configuration.")

        try:
            response = self.session.post(
                self.url,
                headers={'x-goog-api-key': self.api_key, 'Content-Type': 'application/json'},
                json=self.build_request(current, intent),
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.error(f"Gemini API error: {e}")
            raise SuggestionError(f"Pose suggester request failed: {e}") from e
        except ValueError as e:
            logger.error(f"Gemini API returned a non-JSON body: {e}")
            raise SuggestionError("Pose suggester returned a non-JSON body") from e

        target = parse_joint_response(self._response_text(payload))
        logger.info(f"Suggested joints for {intent!r}: {target.as_dict()}")
        return target
