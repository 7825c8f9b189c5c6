from __future__ import annotations

import json
import sys
from pathlib import Path
import unittest

from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parent.parent
API_CODE_PATH = PROJECT_ROOT / "api-code"
for path in (PROJECT_ROOT, API_CODE_PATH):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from app_main import build_app  # noqa: E402
from services import TelegramAPIError  # noqa: E402
from settings import DOCKER_MANIFEST_V2, Settings  # noqa: E402


class FakeMessenger:
    def __init__(self, calls: list) -> None:
        self.calls = calls
        self.sent: list[tuple] = []
        self.answered: list[str] = []
        self.send_error: Exception | None = None
        self.answer_error: Exception | None = None

    async def send_message(self, text, action_label=None, action_payload=None) -> None:
        self.sent.append((text, action_label, action_payload))
        self.calls.append(("send_message", text))
        if self.send_error:
            raise self.send_error

    async def answer_callback(self, callback_id: str) -> None:
        self.answered.append(callback_id)
        if self.answer_error:
            raise self.answer_error

    async def close(self) -> None:
        return


class FakeDocker:
    def __init__(self, calls: list) -> None:
        self.calls = calls

    async def pull_image(self, image, username, password) -> None:
        self.calls.append(("pull_image", image))

    async def remove_container(self, container_id, force=False) -> bool:
        self.calls.append(("remove_container", container_id, force))
        return False

    async def create_container(self, name, image, network) -> str:
        self.calls.append(("create_container", name, image, network))
        return "c0ffee"

    async def start_container(self, container_id) -> bool:
        self.calls.append(("start_container", container_id))
        return True

    async def close(self) -> None:
        return


def push_notification(tag: str = "v2", repository: str = "myapp") -> dict:
    return {
        "events": [
            {
                "action": "push",
                "target": {
                    "mediaType": DOCKER_MANIFEST_V2,
                    "repository": repository,
                    "tag": tag,
                },
            }
        ]
    }


def callback_update(data: str, username: str = "approver") -> dict:
    return {
        "update_id": 10,
        "callback_query": {
            "id": "cb-7",
            "data": data,
            "message": {"chat": {"username": username}},
        },
    }


class WebhookRoutesTest(unittest.TestCase):
    def setUp(self) -> None:
        self.calls: list = []
        self.messenger = FakeMessenger(self.calls)
        self.docker = FakeDocker(self.calls)
        self.settings = Settings.model_validate(
            {
                "REGISTRY_HOST": "registry.example.com",
                "APPROVER_USERNAME": "approver",
                "APP_NAME": "myapp",
                "DOCKER_NETWORK": "net0",
                "WEBHOOK_SECRET": "hook",
            }
        )
        self.app = build_app(self.settings, self.docker, self.messenger)
        self.client = TestClient(self.app, raise_server_exceptions=False)

    def test_push_event_offers_deploy_button(self) -> None:
        response = self.client.post("/hook/registry", json=push_notification("v2"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "OK")
        self.assertEqual(len(self.messenger.sent), 1)
        text, label, payload = self.messenger.sent[0]
        self.assertIn("v2", text)
        self.assertEqual(label, "Deploy")
        self.assertEqual(json.loads(payload), {"command": "deploy", "tag": "v2"})

    def test_other_repository_is_ignored(self) -> None:
        response = self.client.post("/hook/registry", json=push_notification(repository="other"))

        self.assertEqual(response.text, "OK")
        self.assertEqual(self.messenger.sent, [])

    def test_malformed_registry_body_still_answers_ok(self) -> None:
        response = self.client.post("/hook/registry", content=b"{not json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "OK")
        self.assertEqual(self.messenger.sent, [])

    def test_announcement_failure_does_not_fail_request(self) -> None:
        self.messenger.send_error = TelegramAPIError(502, "bad gateway")

        response = self.client.post("/hook/registry", json=push_notification())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "OK")

    def test_approved_callback_redeploys(self) -> None:
        self.client.post("/hook/registry", json=push_notification("v2"))
        payload = self.messenger.sent[0][2]
        self.calls.clear()

        response = self.client.post("/hook/telegram", json=callback_update(payload))

        self.assertEqual(response.text, "OK")
        self.assertEqual(self.messenger.answered, ["cb-7"])
        self.assertEqual(
            self.calls,
            [
                ("send_message", "Deploying: v2"),
                ("pull_image", "registry.example.com/myapp:v2"),
                ("remove_container", "myapp", True),
                ("create_container", "myapp", "registry.example.com/myapp:v2", "net0"),
                ("start_container", "c0ffee"),
                ("send_message", "Deployed: v2"),
            ],
        )

        health = self.client.get("/healthz").json()
        self.assertEqual(health["deploy_state"], "idle")
        self.assertEqual(health["last_deploy"]["outcome"], "succeeded")
        self.assertEqual(health["last_deploy"]["tag"], "v2")

    def test_unauthorized_callback_never_reaches_docker(self) -> None:
        response = self.client.post(
            "/hook/telegram",
            json=callback_update('{"command":"deploy","tag":"v2"}', username="mallory"),
        )

        self.assertEqual(response.text, "OK")
        self.assertEqual(self.messenger.answered, ["cb-7"])
        self.assertEqual(self.calls, [])

    def test_update_without_callback_is_ok(self) -> None:
        response = self.client.post("/hook/telegram", json={"update_id": 1, "message": {"text": "hi"}})

        self.assertEqual(response.text, "OK")
        self.assertEqual(self.messenger.answered, [])

    def test_acknowledge_failure_drops_connection_without_body(self) -> None:
        self.messenger.answer_error = TelegramAPIError(400, "query is too old")

        response = self.client.post(
            "/hook/telegram", json=callback_update('{"command":"deploy","tag":"v2"}')
        )

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.content, b"")
        self.assertEqual(response.headers.get("connection"), "close")
        self.assertEqual(self.calls, [])

    def test_unknown_path_is_plain_404(self) -> None:
        for path in ("/registry", "/hook/unknown", "/"):
            with self.subTest(path=path):
                response = self.client.post(path, json={})
                self.assertEqual(response.status_code, 404)
                self.assertEqual(response.text, "404 Not Found")

    def test_healthz_before_any_deploy(self) -> None:
        health = self.client.get("/healthz").json()

        self.assertEqual(health["status"], "healthy")
        self.assertEqual(health["deploy_state"], "idle")
        self.assertIsNone(health["current_step"])
        self.assertIsNone(health["last_deploy"])


if __name__ == "__main__":
    unittest.main()
