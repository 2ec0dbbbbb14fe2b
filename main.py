import asyncio
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Any, Optional
from contextlib import asynccontextmanager

from indexed_pq import (
    IndexedMinHeap,
    Handle,
    EmptyQueueError,
    FullQueueError,
    InvalidHandleError,
    PriorityRangeError,
)
from indexed_pq.logger import init_logger

logger = init_logger(__name__)


DEFAULT_QUEUE_CONFIG = {
    "capacity": None,
    "priority_bits": IndexedMinHeap.DEFAULT_PRIORITY_BITS,
}


class QueueConfig(BaseModel):
    name: str
    capacity: Optional[int] = None
    priority_bits: int = IndexedMinHeap.DEFAULT_PRIORITY_BITS


class InsertRequest(BaseModel):
    priority: int
    value: Any = None


class InsertResponse(BaseModel):
    handle: str
    size: int


class PriorityUpdateRequest(BaseModel):
    handle: str
    priority: int


class PriorityUpdateResponse(BaseModel):
    handle: str
    priority: int
    size: int


class ItemResponse(BaseModel):
    priority: int
    value: Any = None


class QueueStatusResponse(BaseModel):
    name: str
    size: int
    capacity: Optional[int] = None
    is_empty: bool
    is_full: bool


app_state = {
    # Config for any queue name without an entry in queue_configs
    "default_queue_config": dict(DEFAULT_QUEUE_CONFIG),
    "queue_configs": {},
    "queues": {},
}


# One lock per queue name; the heap itself is single-owner
_locks = {}
_lock_creation_lock = None
_lock_loop_id = None


def _get_lock_creation_lock():
    """Get or create the lock creation lock for the current event loop."""
    global _lock_creation_lock, _lock_loop_id
    try:
        loop = asyncio.get_running_loop()
        current_loop_id = id(loop)
    except RuntimeError:
        current_loop_id = None

    if _lock_creation_lock is None or _lock_loop_id != current_loop_id:
        _lock_creation_lock = asyncio.Lock()
        _lock_loop_id = current_loop_id
        _locks.clear()  # Clear locks from previous event loop
    return _lock_creation_lock


async def _get_lock(name: str):
    """Get or create the lock guarding the named queue."""
    lock_creation_lock = _get_lock_creation_lock()
    async with lock_creation_lock:
        if name not in _locks:
            _locks[name] = asyncio.Lock()
        return _locks[name]


def clear_queue_locks():
    global _lock_creation_lock, _lock_loop_id
    _locks.clear()
    _lock_creation_lock = None
    _lock_loop_id = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_state["default_queue_config"] = dict(DEFAULT_QUEUE_CONFIG)

    yield

    for queue in app_state["queues"].values():
        queue.clear()
    app_state["queues"].clear()


app = FastAPI(title="Indexed Priority Queue", lifespan=lifespan)


def get_queue(name: str) -> IndexedMinHeap:
    if name not in app_state["queues"]:
        config = app_state["queue_configs"].get(name, app_state["default_queue_config"])
        app_state["queues"][name] = IndexedMinHeap(
            capacity=config["capacity"],
            priority_bits=config["priority_bits"],
        )
        logger.info("Created queue %s (capacity=%s, priority_bits=%d)",
                    name, config["capacity"], config["priority_bits"])
    return app_state["queues"][name]


def _parse_handle(text: str) -> Handle:
    try:
        return Handle.parse(text)
    except InvalidHandleError as e:
        raise HTTPException(status_code=410, detail=str(e))


def _http_error(name: str, error: Exception) -> HTTPException:
    if isinstance(error, EmptyQueueError):
        status_code = 404
    elif isinstance(error, FullQueueError):
        status_code = 409
    elif isinstance(error, InvalidHandleError):
        status_code = 410
    elif isinstance(error, PriorityRangeError):
        status_code = 422
    else:
        raise error
    logger.debug("Queue %s rejected operation: %s", name, error)
    return HTTPException(status_code=status_code, detail=str(error))


@app.put("/v1/queues/config")
async def update_queue_config(config: QueueConfig):
    if config.capacity is not None and config.capacity < 0:
        raise HTTPException(status_code=422, detail="capacity must be non-negative")
    if config.priority_bits <= 0:
        raise HTTPException(status_code=422, detail="priority_bits must be positive")

    lock = await _get_lock(config.name)
    async with lock:
        app_state["queue_configs"][config.name] = {
            "capacity": config.capacity,
            "priority_bits": config.priority_bits,
        }
        old_queue = app_state["queues"].pop(config.name, None)
        if old_queue is not None:
            old_queue.clear()
        get_queue(config.name)

    return {"status": "updated", "name": config.name}


@app.post("/v1/queues/{name}/insert", response_model=InsertResponse)
async def insert_item(name: str, request: InsertRequest):
    lock = await _get_lock(name)
    async with lock:
        queue = get_queue(name)
        try:
            handle = queue.insert(request.priority, request.value)
        except (FullQueueError, PriorityRangeError) as e:
            raise _http_error(name, e)
        return InsertResponse(handle=str(handle), size=queue.size())


@app.get("/v1/queues/{name}/min", response_model=ItemResponse)
async def peek_min(name: str):
    lock = await _get_lock(name)
    async with lock:
        queue = get_queue(name)
        try:
            return ItemResponse(priority=queue.peek_min_priority(), value=queue.peek_min())
        except EmptyQueueError as e:
            raise _http_error(name, e)


@app.post("/v1/queues/{name}/extract", response_model=ItemResponse)
async def extract_min(name: str):
    lock = await _get_lock(name)
    async with lock:
        queue = get_queue(name)
        try:
            item = queue.extract_min_item()
        except EmptyQueueError as e:
            raise _http_error(name, e)
        return ItemResponse(priority=item.priority, value=item.value)


async def _update_priority(name: str, request: PriorityUpdateRequest, increase: bool):
    handle = _parse_handle(request.handle)
    lock = await _get_lock(name)
    async with lock:
        queue = get_queue(name)
        try:
            if increase:
                queue.increase_priority(handle, request.priority)
            else:
                queue.decrease_priority(handle, request.priority)
            priority = queue.priority_of(handle)
        except (InvalidHandleError, PriorityRangeError) as e:
            raise _http_error(name, e)
        return PriorityUpdateResponse(handle=request.handle, priority=priority, size=queue.size())


@app.post("/v1/queues/{name}/decrease", response_model=PriorityUpdateResponse)
async def decrease_priority(name: str, request: PriorityUpdateRequest):
    return await _update_priority(name, request, increase=False)


@app.post("/v1/queues/{name}/increase", response_model=PriorityUpdateResponse)
async def increase_priority(name: str, request: PriorityUpdateRequest):
    return await _update_priority(name, request, increase=True)


@app.get("/v1/queues/{name}/status", response_model=QueueStatusResponse)
async def get_queue_status(name: str):
    if name not in app_state["queues"]:
        raise HTTPException(status_code=404, detail=f"unknown queue: {name}")

    lock = await _get_lock(name)
    async with lock:
        queue = app_state["queues"].get(name)
        if queue is None:
            raise HTTPException(status_code=404, detail=f"unknown queue: {name}")
        return QueueStatusResponse(
            name=name,
            size=queue.size(),
            capacity=queue.capacity,
            is_empty=queue.is_empty(),
            is_full=queue.is_full()
        )


@app.delete("/v1/queues/{name}")
async def delete_queue(name: str):
    if name not in app_state["queues"]:
        raise HTTPException(status_code=404, detail=f"unknown queue: {name}")

    lock = await _get_lock(name)
    async with lock:
        queue = app_state["queues"].pop(name, None)
        if queue is None:
            raise HTTPException(status_code=404, detail=f"unknown queue: {name}")
        queue.clear()
        logger.info("Destroyed queue %s", name)

    return {"status": "deleted", "name": name}


@app.get("/health")
async def health():
    return {"status": "healthy"}
