"""
Tests for the Flask pose service.
"""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock, patch

import pytest

from h220_kinematics.copilot import NO_POSE_REPLY
from h220_kinematics.pose_service import PoseService
from h220_kinematics.pose_suggester import GeminiPoseSuggester, SuggestionError
from h220_kinematics.pose_utils import INITIAL_JOINTS


@pytest.fixture
def service(mock_suggester):
    return PoseService(suggester=mock_suggester)


@pytest.fixture
def client(service):
    service.app.config['TESTING'] = True
    return service.app.test_client()


class TestJointsEndpoints:
    """Joint-state reads and updates."""

    def test_get_joints(self, client):
        data = client.get('/joints').get_json()

        assert data['joints'] == INITIAL_JOINTS.as_dict()
        assert data['limits']['j2'] == {'min': 0.0, 'max': 160.0}

    def test_update_is_clamped(self, client):
        data = client.post('/joints', json={'j2': 500}).get_json()

        assert data['success'] is True
        assert data['joints']['j2'] == 160.0
        assert data['rejected'] == []

    def test_nan_is_rejected(self, client, service):
        response = client.post('/joints', data='{"j2": NaN, "j1": 30}',
                               content_type='application/json')
        data = response.get_json()

        assert data['rejected'] == ['j2']
        assert data['joints']['j2'] == 90.0
        assert data['joints']['j1'] == 30.0
        assert service.stats['values_rejected'] == 1

    def test_multi_axis_update_is_one_store_write(self, client, service):
        with patch.object(service.store, 'update_axes', wraps=service.store.update_axes) as update, \
                patch.object(service.store, 'set_axis') as set_axis:
            data = client.post('/joints', json={'j1': 30, 'j2': 100}).get_json()

        update.assert_called_once_with({'j1': 30, 'j2': 100})
        set_axis.assert_not_called()
        assert (data['joints']['j1'], data['joints']['j2']) == (30.0, 100.0)

    def test_unknown_axis(self, client):
        response = client.post('/joints', json={'j9': 1})
        assert response.status_code == 400

    def test_non_object_body(self, client):
        response = client.post('/joints', json=[1, 2, 3])
        assert response.status_code == 400

    def test_reset(self, client):
        client.post('/joints', json={'j1': 45})
        data = client.post('/joints/reset').get_json()
        assert data['joints'] == INITIAL_JOINTS.as_dict()


class TestPoseEndpoints:
    """Pose computation."""

    def test_current_pose(self, client):
        data = client.get('/pose').get_json()

        assert data['branch'] == 'front'
        assert data['pose']['x'] == pytest.approx(1562.0)
        assert data['pose']['z'] == pytest.approx(1718.0)
        assert data['pose']['rx'] == 180.0

    def test_stateless_fk(self, client, service):
        body = {'j1': 0, 'j2': 155, 'j3': 0, 'j4': 0, 'j5': 0, 'j6': 0}
        data = client.post('/fk', json=body).get_json()

        assert data['branch'] == 'back'
        assert data['pose']['ry'] == 25.0
        assert service.store.joints == INITIAL_JOINTS

    def test_fk_requires_all_joints(self, client):
        response = client.post('/fk', json={'j1': 0})
        assert response.status_code == 400

    def test_fk_rejects_non_finite(self, client):
        response = client.post('/fk', data='{"j1": 0, "j2": Infinity, "j3": 0, "j4": 0, "j5": 0, "j6": 0}',
                               content_type='application/json')
        assert response.status_code == 400


class TestChatEndpoints:
    """Copilot chat over HTTP."""

    def test_chat_moves_robot(self, client):
        data = client.post('/chat', json={'message': 'go to ready'}).get_json()

        assert data['success'] is True
        assert data['reply']['role'] == 'assistant'
        assert data['joints']['j2'] == 45.0

        history = client.get('/chat').get_json()['messages']
        assert [m['role'] for m in history] == ['system', 'user', 'assistant']

    def test_chat_failure(self, client, service, mock_suggester):
        mock_suggester.suggest_pose.side_effect = SuggestionError("down")

        data = client.post('/chat', json={'message': 'home'}).get_json()

        assert data['success'] is False
        assert data['reply']['is_error'] is True
        assert service.stats['suggestions_failed'] == 1

    @pytest.mark.parametrize("body", [["move"], "move", 42])
    def test_non_object_body(self, client, body):
        response = client.post('/chat', json=body)

        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_malformed_suggestion_reply(self):
        response = Mock()
        response.json.return_value = {'candidates': [{'content': {'parts': None}}]}
        session = Mock()
        session.post.return_value = response
        service = PoseService(suggester=GeminiPoseSuggester(api_key="secret", session=session))

        data = service.app.test_client().post('/chat', json={'message': 'home'}).get_json()

        assert data['success'] is False
        assert data['reply']['content'] == NO_POSE_REPLY
        assert data['joints'] == INITIAL_JOINTS.as_dict()

    def test_empty_message(self, client):
        assert client.post('/chat', json={'message': '  '}).status_code == 400


def test_status(client):
    data = client.get('/status').get_json()

    assert data['robot_model'] == 'H220'
    assert 'stats' in data


def test_stats_counted_across_threads(client, service):
    def update(i):
        response = service.app.test_client().post(
            '/joints', data=f'{{"j1": {i}, "j6": NaN}}', content_type='application/json')
        return response.status_code

    with ThreadPoolExecutor(max_workers=8) as pool:
        codes = list(pool.map(update, range(40)))

    assert codes == [200] * 40
    status = client.get('/status').get_json()
    assert status['stats']['joint_updates'] == 40
    assert status['stats']['values_rejected'] == 40
