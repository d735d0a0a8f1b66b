from __future__ import annotations

import json
import unittest

from hirepipe.jobs.queue import QueuedJob, retry_delay_seconds

BASE = 5
CAP = 300


class RetryPolicyTests(unittest.TestCase):
    def test_retry_backoff_starts_at_base_delay(self) -> None:
        self.assertEqual(retry_delay_seconds(1, BASE, CAP), BASE)
        self.assertEqual(retry_delay_seconds(0, BASE, CAP), BASE)
        self.assertEqual(retry_delay_seconds(-3, BASE, CAP), BASE)

    def test_retry_backoff_is_exponential_and_capped(self) -> None:
        self.assertEqual(retry_delay_seconds(2, BASE, CAP), BASE * 2)
        self.assertEqual(retry_delay_seconds(3, BASE, CAP), BASE * 4)
        self.assertEqual(retry_delay_seconds(20, BASE, CAP), CAP)

    def test_retry_backoff_is_non_decreasing(self) -> None:
        delays = [retry_delay_seconds(i, BASE, CAP) for i in range(1, 12)]
        self.assertListEqual(delays, sorted(delays))


class QueuedJobTests(unittest.TestCase):
    def test_wire_format_uses_job_id_as_key(self) -> None:
        job = QueuedJob(job_id="j-1", type="pr.generate", payload={"exerciseId": "e-1"})
        self.assertDictEqual(
            json.loads(job.to_json()),
            {"jobId": "j-1", "type": "pr.generate", "payload": {"exerciseId": "e-1"}, "attempt": 1},
        )

    def test_name_is_accepted_when_type_is_missing(self) -> None:
        job = QueuedJob.from_json('{"jobId": "j-2", "name": "rubric.generate", "payload": {}}')
        self.assertEqual(job.type, "rubric.generate")
        self.assertEqual(job.attempt, 1)

    def test_rejects_non_object_payload(self) -> None:
        with self.assertRaises(ValueError):
            QueuedJob.from_json('{"jobId": "j-3", "type": "x", "payload": [1, 2]}')


if __name__ == "__main__":
    unittest.main()
