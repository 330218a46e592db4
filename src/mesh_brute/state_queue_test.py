import threading

import pytest
from mesh_brute.state_queue import SingleSlotQueue


class TestSingleSlotQueue:
    """Test suite for the latest-wins progress queue"""

    def test_latest_wins(self):
        queue: SingleSlotQueue[int] = SingleSlotQueue()
        queue.publish(1)
        queue.publish(2)
        assert queue.get(timeout=1) == 2

    def test_timeout(self):
        queue: SingleSlotQueue[int] = SingleSlotQueue()
        with pytest.raises(TimeoutError):
            queue.get(timeout=0.01)

    def test_close_returns_none(self):
        queue: SingleSlotQueue[int] = SingleSlotQueue()
        queue.close()
        assert queue.get(timeout=1) is None

    def test_pending_item_survives_close(self):
        queue: SingleSlotQueue[int] = SingleSlotQueue()
        queue.publish(7)
        queue.close()
        assert queue.get(timeout=1) == 7
        assert queue.get(timeout=1) is None

    def test_publish_after_close(self):
        queue: SingleSlotQueue[int] = SingleSlotQueue()
        queue.close()
        assert queue.publish(1) is False
        assert queue.get(timeout=1) is None

    def test_cross_thread(self):
        queue: SingleSlotQueue[int] = SingleSlotQueue()

        def producer():
            for i in range(100):
                queue.publish(i)
            queue.close()

        thread = threading.Thread(target=producer)
        thread.start()
        seen = []
        while (item := queue.get(timeout=5)) is not None:
            seen.append(item)
        thread.join()
        assert seen == sorted(seen)
        assert seen[-1] == 99
