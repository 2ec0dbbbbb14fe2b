import pytest
from main import app_state, clear_queue_locks, DEFAULT_QUEUE_CONFIG


def check_heap_invariants(queue):
    """Assert heap order and handle/position consistency for every entry."""
    heap = queue.heap
    for i in range(1, len(heap)):
        parent = (i - 1) // 2
        assert heap[i].priority >= heap[parent].priority, (
            f"Heap order violated at {i}: {heap[parent].priority} > {heap[i].priority}"
        )
    for i, item in enumerate(heap):
        assert item.handle in queue
        assert queue.handles.locate(item.handle) == i
    assert len(queue.handles) == len(heap)
    if queue.capacity is not None:
        assert 0 <= len(heap) <= queue.capacity


@pytest.fixture
def assert_heap_valid():
    return check_heap_invariants


@pytest.fixture(autouse=True)
def reset_app_state():
    """Reset all shared state before each test to prevent cross-test contamination."""
    clear_queue_locks()
    app_state["default_queue_config"] = dict(DEFAULT_QUEUE_CONFIG)
    app_state["queue_configs"] = {}
    app_state["queues"] = {}

    yield

    for queue in app_state["queues"].values():
        queue.clear()
    app_state["queues"] = {}
