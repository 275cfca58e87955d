import threading

from services.notifications import NotificationQueue, WelcomeEmail, TodoCompleted


class RecordingQueue(NotificationQueue):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.seen = []

    def process(self, task):
        self.seen.append(task)
        return super().process(task)


def test_enqueue_drops_newest_when_full():
    q = NotificationQueue(capacity=2)

    assert q.enqueue(WelcomeEmail("a@example.com", "A")) is True
    assert q.enqueue(WelcomeEmail("b@example.com", "B")) is True
    assert q.enqueue(TodoCompleted(1, "third")) is False

    assert q.dropped == 1
    assert [t.email for t in q.pending()] == ["a@example.com", "b@example.com"]


def test_process_known_and_unknown_tasks():
    q = NotificationQueue()
    assert q.process(WelcomeEmail("a@example.com", "A")) is True
    assert q.process(TodoCompleted(7, "done")) is True
    assert q.process("not a task") is False


def test_delivery_delay_uses_injected_sleep():
    naps = []
    q = NotificationQueue(delivery_delay=0.5, sleep=naps.append)

    q.process(WelcomeEmail("a@example.com", "A"))
    q.process(TodoCompleted(1, "x"))
    q.process(object())

    assert naps == [0.5, 0.5]


def test_worker_drains_in_order():
    q = RecordingQueue()
    tasks = [WelcomeEmail("a@example.com", "A"), TodoCompleted(2, "b"), TodoCompleted(3, "c")]
    for task in tasks:
        q.enqueue(task)

    q.start()
    try:
        q.join()
    finally:
        q.stop()

    assert q.seen == tasks
    assert q.pending() == []
    assert not q.running


def test_failing_task_does_not_stop_worker():
    class Flaky(RecordingQueue):
        def process(self, task):
            if isinstance(task, WelcomeEmail):
                self.seen.append(task)
                raise RuntimeError("smtp down")
            return super().process(task)

    q = Flaky()
    q.start()
    try:
        q.enqueue(WelcomeEmail("a@example.com", "A"))
        q.enqueue(TodoCompleted(1, "after failure"))
        q.join()
        assert q.running
    finally:
        q.stop()

    assert q.seen == [WelcomeEmail("a@example.com", "A"), TodoCompleted(1, "after failure")]


def test_enqueue_never_blocks_while_consumer_is_busy():
    release = threading.Event()

    class Slow(NotificationQueue):
        def process(self, task):
            release.wait(5)
            return True

    q = Slow(capacity=1)
    q.start()
    try:
        q.enqueue(TodoCompleted(1, "in flight"))
        # fill the single slot, then the next one is dropped immediately
        accepted = [q.enqueue(TodoCompleted(i, "queued")) for i in range(2, 5)]
        assert accepted.count(False) >= 2
    finally:
        release.set()
        q.join()
        q.stop()


def test_start_and_stop_are_idempotent():
    q = NotificationQueue()
    q.stop()
    q.start()
    q.start()
    assert q.running
    q.stop()
    q.stop()
    assert not q.running
