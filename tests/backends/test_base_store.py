import threading
from hostca.backends.memory import MemoryBackend


class TestHostLocks:
    def test_lock_is_dropped_after_use(self):
        store = MemoryBackend()
        with store.lock('web01'):
            assert 'web01' in store._host_locks
        assert store._host_locks == {}

    def test_reentrant(self):
        store = MemoryBackend()
        with store.lock('web01'):
            with store.lock('web01'):
                pass
            assert 'web01' in store._host_locks
        assert store._host_locks == {}

    def test_same_host_is_serialized(self):
        store = MemoryBackend()
        entered = threading.Event()
        release = threading.Event()
        order = []

        def first():
            with store.lock('web01'):
                entered.set()
                release.wait(5)
                order.append('first')

        def second():
            entered.wait(5)
            with store.lock('web01'):
                order.append('second')

        threads = [threading.Thread(target=first), threading.Thread(target=second)]
        for thread in threads:
            thread.start()
        entered.wait(5)
        release.set()
        for thread in threads:
            thread.join(5)
        assert order == ['first', 'second']
        assert store._host_locks == {}
