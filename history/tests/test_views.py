import json
import shutil
import tempfile
import threading
from pathlib import Path

from django.test import TestCase, override_settings


def _entry(mid, content="hi", role="user", ts=1700000000000):
    return {"content": content, "role": role, "id": mid, "timestamp": ts}


class HistoryEndpointTests(TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmpdir, True)
        self.path = Path(self.tmpdir) / "chat-history.json"
        override = override_settings(CHAT_HISTORY_FILE=str(self.path))
        override.enable()
        self.addCleanup(override.disable)

    def _post(self, payload, raw=None):
        return self.client.post(
            "/api/history",
            data=raw if raw is not None else json.dumps(payload),
            content_type="application/json",
        )

    def test_get_empty(self):
        resp = self.client.get("/api/history")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), [])

    def test_post_then_get(self):
        resp = self._post([_entry("1", "Hello"), _entry("2", "Hi!", "assistant")])
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"success": True})

        history = self.client.get("/api/history").json()
        self.assertEqual([m["id"] for m in history], ["1", "2"])

    def test_numeric_ids_round_trip_unchanged(self):
        self._post([_entry(1, "numeric"), _entry("1", "string")])
        history = self.client.get("/api/history").json()
        self.assertEqual([m["id"] for m in history], [1, "1"])

        self._post([_entry(1), _entry("1")])
        self.assertEqual(len(self.client.get("/api/history").json()), 2)

    def test_post_is_idempotent(self):
        batch = [_entry("1"), _entry("2")]
        self._post(batch)
        self._post(batch)
        self.assertEqual(len(self.client.get("/api/history").json()), 2)

    def test_overlapping_posts_do_not_duplicate_ids(self):
        batches = [[_entry(str(i)) for i in range(n, n + 5)] for n in (0, 3)]
        errors = []

        def _worker(batch):
            from django.test import Client
            resp = Client().post("/api/history", data=json.dumps(batch), content_type="application/json")
            if resp.status_code != 200:
                errors.append(resp.status_code)

        threads = [threading.Thread(target=_worker, args=(b,)) for b in batches]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        ids = [m["id"] for m in json.loads(self.path.read_text(encoding="utf-8"))]
        self.assertEqual(len(ids), len(set(ids)))
        self.assertEqual(sorted(ids, key=int), [str(i) for i in range(8)])

    def test_invalid_json_is_500(self):
        resp = self._post(None, raw="{oops")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "Failed to save chat history"})

    def test_non_array_is_500(self):
        resp = self._post({"id": "1"})
        self.assertEqual(resp.status_code, 500)

    def test_invalid_entry_is_500_and_nothing_saved(self):
        resp = self._post([_entry("1"), {"id": "2"}])
        self.assertEqual(resp.status_code, 500)
        self.assertFalse(self.path.exists())

    def test_method_not_allowed(self):
        self.assertEqual(self.client.delete("/api/history").status_code, 405)
