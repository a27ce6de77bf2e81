"""One-shot request/response boundary around the weekly class scheduler.

A caller (Streamlit page, CLI, another service) sends a single payload:

    {"teachers": [...], "subjects": [...], "classes": [...], "rooms": [...]}

and receives exactly one response dict:

    {"success": True, "schedule": [...], "warnings": [...]}
    {"success": False, "error": "...", "unscheduled": [...], "warnings": [...]}

`handle_request` never raises. `run_in_worker` / `run_in_worker_async` run it
in a fresh single-use worker (a separate process by default, killed once the
response or the timeout arrives) so a slow or crashing run cannot block the
caller. Every run builds its own state, so several requests may be in flight
at once.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import logging
import multiprocessing
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .class_scheduler import (
    ClassInfo,
    Room,
    SchedulerSettings,
    SchedulingError,
    Subject,
    Teacher,
    generate_timetable,
)


logger = logging.getLogger(__name__)


WORKER_MODES = ("process", "thread")


class RequestFormatError(ValueError):
    """The request payload does not have the expected shape."""


@dataclass(frozen=True)
class TimetableRequest:
    teachers: Tuple[Teacher, ...]
    subjects: Tuple[Subject, ...]
    classes: Tuple[ClassInfo, ...]
    rooms: Tuple[Room, ...]

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "teachers": [t.to_dict() for t in self.teachers],
            "subjects": [s.to_dict() for s in self.subjects],
            "classes": [c.to_dict() for c in self.classes],
            "rooms": [r.to_dict() for r in self.rooms],
        }


@dataclass(frozen=True)
class WorkerConfig:
    """How `run_in_worker` isolates a scheduling run.

    Attributes:
        mode: "process" (separate interpreter) or "thread".
        timeout_seconds: Give up waiting for the response after this long.
    """

    mode: str = "process"
    timeout_seconds: float = 60.0

    @classmethod
    def from_env(cls) -> "WorkerConfig":
        """Read `TIMETABLE_WORKER_MODE` / `TIMETABLE_WORKER_TIMEOUT`, falling back to defaults."""

        mode = (os.getenv("TIMETABLE_WORKER_MODE") or cls.mode).strip().lower()
        if mode not in WORKER_MODES:
            raise ValueError(f"TIMETABLE_WORKER_MODE must be one of: {', '.join(WORKER_MODES)}")

        raw_timeout = os.getenv("TIMETABLE_WORKER_TIMEOUT")
        timeout = float(raw_timeout) if raw_timeout else cls.timeout_seconds
        if timeout <= 0:
            raise ValueError("TIMETABLE_WORKER_TIMEOUT must be > 0")
        return cls(mode=mode, timeout_seconds=timeout)


# ----------------------------
# Request parsing
# ----------------------------


def _records(payload: Mapping[str, Any], key: str, factory):
    raw = payload.get(key)
    if raw is None:
        raise RequestFormatError(f"'{key}' is required")
    if not isinstance(raw, (list, tuple)):
        raise RequestFormatError(f"'{key}' must be a list")

    out = []
    for i, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise RequestFormatError(f"{key}[{i}] must be an object")
        try:
            out.append(factory(item))
        except KeyError as e:
            raise RequestFormatError(f"{key}[{i}] is missing field {e.args[0]!r}") from e
        except (TypeError, ValueError) as e:
            raise RequestFormatError(f"{key}[{i}] has an invalid value: {e}") from e
    return tuple(out)


def parse_request(payload: Mapping[str, Any]) -> TimetableRequest:
    if not isinstance(payload, Mapping):
        raise RequestFormatError("request must be an object")

    return TimetableRequest(
        teachers=_records(payload, "teachers", Teacher.from_dict),
        subjects=_records(payload, "subjects", Subject.from_dict),
        classes=_records(payload, "classes", ClassInfo.from_dict),
        rooms=_records(payload, "rooms", Room.from_dict),
    )


# ----------------------------
# Request handling
# ----------------------------


def _failure(error: str, *, unscheduled=(), warnings=()) -> Dict[str, Any]:
    return {"success": False, "error": error, "unscheduled": list(unscheduled), "warnings": list(warnings)}


def handle_request(payload: Mapping[str, Any], settings: SchedulerSettings = SchedulerSettings()) -> Dict[str, Any]:
    """Run one scheduling request and translate the outcome into a response dict."""

    try:
        request = parse_request(payload)
        result = generate_timetable(request.teachers, request.subjects, request.classes, request.rooms, settings)
    except RequestFormatError as e:
        logger.warning("Rejected request: %s", e)
        return _failure(f"Invalid request: {e}")
    except SchedulingError as e:
        return _failure(str(e), unscheduled=e.unscheduled, warnings=e.warnings)
    except Exception as e:
        logger.exception("Timetable generation failed unexpectedly")
        return _failure(f"Timetable generation failed unexpectedly: {e}")

    return {
        "success": True,
        "schedule": [entry.to_dict() for entry in result.entries],
        "warnings": list(result.warnings),
    }


# ----------------------------
# Isolated execution
# ----------------------------


def _run_in_thread(payload: Any, config: WorkerConfig, settings: SchedulerSettings) -> Dict[str, Any]:
    # A thread cannot be stopped; on timeout it is left to finish on its own.
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="timetable-worker")
    try:
        future = executor.submit(handle_request, payload, settings)
        return future.result(timeout=config.timeout_seconds)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def _run_in_process(payload: Any, config: WorkerConfig, settings: SchedulerSettings) -> Dict[str, Any]:
    pool = multiprocessing.get_context().Pool(processes=1)
    try:
        job = pool.apply_async(handle_request, (payload, settings))
        return job.get(timeout=config.timeout_seconds)
    finally:
        # The worker is killed whatever the outcome, including a run still in progress.
        pool.terminate()
        pool.join()


def run_in_worker(
    payload: Any,
    config: Optional[WorkerConfig] = None,
    settings: SchedulerSettings = SchedulerSettings(),
) -> Dict[str, Any]:
    """Send one request to a fresh worker, wait for its one response, discard the worker.

    Never raises: a bad configuration, a timeout, a worker that dies or a
    payload that cannot be handed to the worker all come back as the failure
    response. The payload is passed through as is; `handle_request` validates it.
    """

    try:
        config = config or WorkerConfig.from_env()
        if config.mode == "thread":
            return _run_in_thread(payload, config, settings)
        if config.mode == "process":
            return _run_in_process(payload, config, settings)
        raise ValueError(f"Unknown worker mode: {config.mode!r}")
    except (concurrent.futures.TimeoutError, multiprocessing.TimeoutError):
        logger.error("Timetable worker timed out after %.1fs", config.timeout_seconds)
        return _failure(f"Timetable generation timed out after {config.timeout_seconds:g} seconds")
    except Exception as e:
        logger.exception("Timetable worker failed")
        return _failure(f"Timetable worker failed: {e}")


async def run_in_worker_async(
    payload: Any,
    config: Optional[WorkerConfig] = None,
    settings: SchedulerSettings = SchedulerSettings(),
) -> Dict[str, Any]:
    """Awaitable variant of `run_in_worker`; independent requests can be gathered.

    The blocking wait runs on the loop's default executor, so each awaited
    request still gets its own single-use worker.
    """

    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(run_in_worker, payload, config, settings))
