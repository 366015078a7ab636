import json
import shutil
import sys
import tempfile
import time
import unittest
from pathlib import Path

from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from orchestra import main
from orchestra.health import HealthBoard
from orchestra.session import SessionRegistry, TranscriptStore


class ConsoleApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp_dir = Path(tempfile.mkdtemp(prefix="console-api-tests-"))
        self._old_registry = main.registry
        self._old_health_board = main.health_board
        self._old_transcript_store = main.transcript_store

        main.registry = SessionRegistry()
        main.health_board = HealthBoard()
        main.transcript_store = TranscriptStore(self.tmp_dir)
        # one event loop for the whole test so resolution timers survive between requests
        self.client = TestClient(main.app)
        self.client.__enter__()

    def tearDown(self) -> None:
        self.client.__exit__(None, None, None)
        main.registry = self._old_registry
        main.health_board = self._old_health_board
        main.transcript_store = self._old_transcript_store
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    @staticmethod
    def _read_sse(response) -> list[dict]:
        events: list[dict] = []
        for line in response.text.splitlines():
            line = line.strip()
            if line.startswith("data: "):
                events.append(json.loads(line[6:]))
        return events

    def _create(self, **payload) -> dict:
        resp = self.client.post("/api/sessions", json=payload)
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()

    def _wait_until_idle(self, session_id: str, timeout: float = 3.0) -> list[dict]:
        deadline = time.monotonic() + timeout
        while True:
            messages = self.client.get(f"/api/sessions/{session_id}/messages").json()
            if not any(m["status"] == "executing" for m in messages) or time.monotonic() > deadline:
                return messages
            time.sleep(0.02)

    def test_health(self):
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")

    def test_create_session_and_reject_duplicate_seed(self):
        summary = self._create(seed=1234)
        self.assertEqual(summary["session_id"], "sess-ya")
        self.assertEqual(summary["seed"], 1234)
        self.assertEqual(summary["message_count"], 1)
        self.assertEqual(summary["console_status"], "Online")

        dup = self.client.post("/api/sessions", json={"seed": 1234})
        self.assertEqual(dup.status_code, 409)

        listed = self.client.get("/api/sessions").json()
        self.assertEqual([s["session_id"] for s in listed], ["sess-ya"])

    def test_create_session_without_body_uses_defaults(self):
        resp = self.client.post("/api/sessions")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertLess(resp.json()["seed"], 2**31)

    def test_send_message_resolves_in_background(self):
        sid = self._create(seed=1234, base_delay_min=0, base_delay_max=5)["session_id"]

        resp = self.client.post(f"/api/sessions/{sid}/messages", json={"content": "hi"})
        self.assertEqual(resp.status_code, 200)
        assistant = resp.json()
        self.assertEqual(assistant["status"], "executing")
        self.assertIsNone(assistant["finished_at"])

        messages = self._wait_until_idle(sid)
        self.assertEqual(len(messages), 3)
        self.assertEqual(messages[1]["role"], "user")
        self.assertEqual(messages[2]["id"], assistant["id"])
        self.assertIn(messages[2]["status"], {"success", "warning", "error"})
        self.assertIsNotNone(messages[2]["finished_at"])

    def test_stream_emits_messages_until_idle(self):
        sid = self._create(seed=77, base_delay_min=0, base_delay_max=5)["session_id"]
        assistant = self.client.post(f"/api/sessions/{sid}/messages", json={"content": "stream"}).json()

        resp = self.client.get(f"/api/sessions/{sid}/stream")
        self.assertEqual(resp.status_code, 200)
        events = self._read_sse(resp)

        self.assertEqual(events[-1]["type"], "idle")
        updates = [e["content"] for e in events if e["type"] == "message" and e["content"]["id"] == assistant["id"]]
        self.assertTrue(updates)
        self.assertIn(updates[-1]["status"], {"success", "warning", "error"})

    def test_controls(self):
        sid = self._create(seed=31, long_running_delay_ms=60_000)["session_id"]

        chaos = self.client.post(f"/api/sessions/{sid}/chaos").json()
        self.assertTrue(chaos["chaos_mode"])

        injected = self.client.post(f"/api/sessions/{sid}/inject-error").json()
        self.assertEqual(injected["status"], "error")
        self.assertEqual(self.client.get(f"/api/sessions/{sid}").json()["console_status"], "Degraded")

        long_task = self.client.post(f"/api/sessions/{sid}/long-running").json()
        self.assertEqual(long_task["status"], "executing")
        summary = self.client.get(f"/api/sessions/{sid}").json()
        self.assertEqual(summary["console_status"], "Executing")
        self.assertEqual(summary["pending_resolutions"], 1)

        system = self.client.post(f"/api/sessions/{sid}/system", json={"content": "note"}).json()
        self.assertEqual(system["role"], "system")

        cleared = self.client.post(f"/api/sessions/{sid}/clear").json()
        self.assertEqual([m["content"] for m in cleared], ["Session restarted: sess-v"])
        summary = self.client.get(f"/api/sessions/{sid}").json()
        self.assertTrue(summary["chaos_mode"])
        self.assertEqual(summary["pending_resolutions"], 0)

    def test_invalid_delay_range_is_bad_request(self):
        sid = self._create(seed=9, base_delay_min=10, base_delay_max=5)["session_id"]
        resp = self.client.post(f"/api/sessions/{sid}/messages", json={"content": "hi"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(len(self.client.get(f"/api/sessions/{sid}/messages").json()), 1)

    def test_unknown_session(self):
        self.assertEqual(self.client.get("/api/sessions/sess-missing/messages").status_code, 404)
        self.assertEqual(self.client.post("/api/sessions/sess-missing/clear").status_code, 404)
        self.assertEqual(self.client.delete("/api/sessions/sess-missing").status_code, 404)

    def test_delete_session(self):
        sid = self._create(seed=2)["session_id"]
        self.assertEqual(self.client.delete(f"/api/sessions/{sid}").json()["status"], "deleted")
        self.assertEqual(self.client.get(f"/api/sessions/{sid}").status_code, 404)

    def test_command_palette(self):
        commands = self.client.get("/api/commands", params={"q": "chaos"}).json()
        self.assertEqual([c["id"] for c in commands], ["chaos"])
        self.assertEqual(len(self.client.get("/api/commands").json()), 3)

        sid = self._create(seed=15)["session_id"]
        resp = self.client.post(f"/api/sessions/{sid}/commands/inject")
        self.assertEqual(resp.status_code, 200)
        messages = self.client.get(f"/api/sessions/{sid}/messages").json()
        self.assertEqual(messages[-1]["content"], "Injected system message via palette")

        self.assertEqual(self.client.post(f"/api/sessions/{sid}/commands/reboot").status_code, 404)

    def test_report_and_transcript_export(self):
        sid = self._create(seed=12)["session_id"]
        self.client.post(f"/api/sessions/{sid}/inject-error")

        report = self.client.get(f"/api/sessions/{sid}/report").json()
        self.assertEqual(report["session_id"], "sess-c")
        self.assertEqual(report["status_counts"], {"success": 1, "error": 1})

        markdown = self.client.get(f"/api/sessions/{sid}/report", params={"format": "markdown"})
        self.assertEqual(markdown.status_code, 200)
        self.assertIn("# Session Report: sess-c", markdown.text)

        self.assertEqual(self.client.post(f"/api/sessions/{sid}/export").json()["status"], "saved")
        self.assertEqual(self.client.get("/api/transcripts").json(), ["sess-c"])
        saved = self.client.get("/api/transcripts/sess-c").json()
        self.assertEqual(len(saved["messages"]), 2)
        self.assertEqual(self.client.get("/api/transcripts/sess-missing").status_code, 404)

    def test_replay_is_deterministic(self):
        payload = {"seed": 7, "prompts": ["a", "b"], "chaos": True}
        first = self.client.post("/api/replay", json=payload)
        second = self.client.post("/api/replay", json=payload)

        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json(), second.json())
        body = first.json()
        self.assertEqual(body["session_id"], "sess-7")
        self.assertEqual(len(body["messages"]), 6)
        self.assertTrue(all(m["status"] != "executing" for m in body["messages"]))

    def test_module_health_events(self):
        modules = self.client.get("/api/modules").json()
        self.assertEqual(len(modules), 3)
        self.assertTrue(all(m["state"]["status"] == "OK" for m in modules))

        url = "/api/modules/EXECUTION_KERNEL/events"
        self.assertEqual(self.client.post(url, json={"type": "DEGRADE"}).json()["state"]["status"], "DEGRADED")
        self.assertEqual(self.client.post(url, json={"type": "CRITICAL_FAULT"}).json()["state"]["status"], "ERROR")
        self.assertEqual(self.client.post(url, json={"type": "DEGRADE"}).json()["state"]["status"], "ERROR")
        self.assertEqual(self.client.post(url, json={"type": "RECOVER"}).json()["state"]["status"], "OK")

        self.assertEqual(self.client.post(url, json={"type": "REBOOT"}).status_code, 422)
        self.assertEqual(self.client.get("/api/modules/TELEMETRY").status_code, 404)
        self.assertEqual(self.client.post("/api/modules/TELEMETRY/events", json={"type": "RECOVER"}).status_code, 404)
        self.assertEqual(self.client.get("/api/modules/COMPLIANCE_ENGINE").json()["state"]["status"], "OK")


if __name__ == "__main__":
    unittest.main()
