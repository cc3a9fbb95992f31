"""
================================================================================
Recorder
================================================================================

Single FIFO queue through which every test step passes.

Steps are queued with add() and executed one at a time by a single consumer
task, so the order of backend calls is always the order the steps were
written in, no matter how long each call takes.

Features:
    - Sessions: named save-points (stack of insertion cursors) for within
      blocks, frame switching and other nested step groups
    - Retry policies: predicate + count, optional backoff delay
    - catch_without_stop(): report an error and keep going
    - reset() / wait(timeout): drop pending steps on cancellation
    - Event hooks for reporting (task.queued, task.passed, ...)

Failure semantics:
    An unhandled step error halts the queue: pending steps fail with the same
    error and later add() calls return already-failed futures until start(),
    reset() or session.start() is called.

Usage:
    recorder = Recorder()
    recorder.start()
    recorder.add("open login page", page.open_login)
    recorder.add("fill username", lambda: actions.fill_field("Username", "demo"))
    await recorder.promise()

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict, deque
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Union

from loguru import logger

from stepchain.common import get_config

from .errors import TaskTimeoutError, UsageError


TaskFn = Callable[[], Union[Any, Awaitable[Any]]]
ErrorHandler = Callable[[BaseException], Any]

# Task currently executed by the consumer; visible to code running inside it
_current_task: ContextVar[Optional["Task"]] = ContextVar("stepchain_current_task", default=None)


class RecorderEvent:
    """Names of events emitted by the recorder."""
    QUEUED = "task.queued"
    STARTED = "task.started"
    PASSED = "task.passed"
    FAILED = "task.failed"
    RETRIED = "task.retried"
    HALTED = "queue.halted"


class RetryPolicy:
    """
    Retry configuration for failing steps.

    A failing step whose error satisfies `when` is re-run up to `retries`
    times. Retries are immediate unless `delay_seconds` is set.
    """

    def __init__(
        self,
        retries: int = 3,
        when: Optional[Callable[[BaseException], bool]] = None,
        delay_seconds: float = 0.0,
        backoff_multiplier: float = 2.0,
        max_delay_seconds: float = 10.0,
    ):
        """
        Args:
            retries: Additional attempts after the first failure
            when: Predicate on the error; None matches every error
            delay_seconds: Initial delay between attempts
            backoff_multiplier: Multiplier for exponential backoff
            max_delay_seconds: Maximum delay between attempts
        """
        if isinstance(retries, bool) or not isinstance(retries, int) or retries < 0:
            raise UsageError(f"retries must be a non-negative integer, got {retries!r}")
        if when is not None and not callable(when):
            raise UsageError(f"retry predicate must be callable, got {when!r}")
        if delay_seconds < 0 or max_delay_seconds < 0 or backoff_multiplier < 1:
            raise UsageError("retry delays must be non-negative and backoff_multiplier >= 1")

        self.retries = retries
        self.when = when
        self.delay_seconds = delay_seconds
        self.backoff_multiplier = backoff_multiplier
        self.max_delay_seconds = max_delay_seconds

    def matches(self, error: BaseException) -> bool:
        return self.when is None or bool(self.when(error))

    def delay_for(self, attempt: int) -> float:
        """Delay before re-running after failed attempt number `attempt` (1-based)."""
        if not self.delay_seconds:
            return 0.0
        delay = self.delay_seconds * self.backoff_multiplier ** (attempt - 1)
        return min(delay, self.max_delay_seconds)

    def __repr__(self) -> str:
        return f"RetryPolicy(retries={self.retries}, when={getattr(self.when, '__name__', self.when)})"


@dataclass(eq=False)
class SavePoint:
    """
    An open session.

    `cursor` is the queue index where the session's next task is inserted;
    None means tasks are appended to the end of the queue.
    """
    name: str
    cursor: Optional[int] = None
    catch_handler: Optional[ErrorHandler] = None
    tasks: List["Task"] = field(default_factory=list)


@dataclass(eq=False)
class Task:
    name: str
    fn: TaskFn
    future: asyncio.Future
    retry_policy: Optional[RetryPolicy] = None
    save_point: Optional[SavePoint] = None
    attempts: int = 0
    # queue index for sessions opened while this task runs; None when idle
    cursor: Optional[int] = None


class RecorderSession:
    """Save-point API exposed as `recorder.session`."""

    def __init__(self, recorder: "Recorder"):
        self._recorder = recorder

    @property
    def running(self) -> bool:
        return bool(self._recorder._save_points)

    @property
    def name(self) -> Optional[str]:
        save_point = self._recorder._top_save_point()
        return save_point.name if save_point else None

    def start(self, name: str) -> None:
        """
        Open a session. Tasks added until restore() run as one contiguous block.

        Opened from inside a running task, the block runs right after that
        task and after any block it opened before, so the task can await it;
        opened from outside, it is appended to the queue.
        """
        recorder = self._recorder
        parent = recorder._top_save_point()
        if parent is not None and parent.cursor is not None:
            cursor = parent.cursor
        elif _current_task.get() is not None:
            cursor = _current_task.get().cursor or 0
        else:
            cursor = None

        recorder._save_points.append(SavePoint(name=name, cursor=cursor))
        recorder._error = None
        recorder._scheduled.append("--->")
        logger.debug(f"{recorder._label()}Starting <{name}> session")

    def restore(self, name: Optional[str] = None) -> Awaitable[Any]:
        """
        Close the innermost session.

        Returns:
            Awaitable settled when every task of the session has settled.
            Inside a running task, awaiting it runs the session block right
            away; left un-awaited, the block runs after the task.

        Raises:
            UsageError: No session is open, or `name` is not the innermost one
        """
        recorder = self._recorder
        save_point = recorder._top_save_point()
        if save_point is None:
            raise UsageError("No recorder session to restore")
        if name is not None and name != save_point.name:
            raise UsageError(f"Can't restore <{name}> session while <{save_point.name}> is open")

        recorder._save_points.pop()
        recorder._scheduled.append("<---")
        logger.debug(f"{recorder._label()}Finished <{save_point.name}> session")

        if not save_point.tasks:
            return recorder._settled()
        if _current_task.get() is not None and save_point.cursor is not None:
            return _InlineRestore(recorder, save_point)
        return recorder._follow(save_point.tasks[-1].future)

    def catch(self, handler: ErrorHandler) -> None:
        """Alias of recorder.catch_without_stop() for the current session."""
        self._recorder.catch_without_stop(handler)


class Recorder:
    """
    Sequential, retryable step queue.

    One Recorder serves one browser session; run independent sessions with
    independent recorders.
    """

    def __init__(self) -> None:
        self._running = False
        self._queue_id = 0
        self._pending: Deque[Task] = deque()
        self._save_points: List[SavePoint] = []
        self._current: Optional[Task] = None
        self._running_tasks: List[Task] = []
        self._worker: Optional[asyncio.Task] = None
        self._error: Optional[BaseException] = None
        self._err_handler: Optional[ErrorHandler] = None
        self._catch_handler: Optional[ErrorHandler] = None
        self._retries: List[RetryPolicy] = []
        self._listeners: Dict[str, List[Callable[..., Any]]] = defaultdict(list)
        self._scheduled: List[str] = []
        self.session = RecorderSession(self)

        default_retries = get_config("recorder.retries", 0)
        if default_retries:
            self.retry(RetryPolicy(retries=int(default_retries)))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def running(self) -> bool:
        return self._running

    @property
    def halted_by(self) -> Optional[BaseException]:
        """Error that halted the queue, if any."""
        return self._error

    def start(self) -> None:
        """Start recording: clear error handlers and any previous queue."""
        self._running = True
        self._err_handler = None
        self.reset()

    def stop(self) -> None:
        """Stop recording; add() skips tasks until start() or force=True."""
        logger.debug(f"{self._label()}Stopping recording tasks")
        self._running = False

    def reset(self, error: Optional[BaseException] = None) -> None:
        """
        Drop all pending tasks and start a fresh queue.

        The task in flight is not aborted; it settles on its own. Pending
        tasks never run: their futures fail with `error`, or are cancelled
        when no error is given.
        """
        dropped = list(self._pending)
        self._pending.clear()
        for task in dropped:
            if task.future.done():
                continue
            if error is not None:
                task.future.set_exception(error)
            else:
                task.future.cancel()

        self._queue_id += 1
        self._save_points.clear()
        for running in self._running_tasks:
            running.cursor = 0
        self._error = None
        self._catch_handler = None
        self._scheduled = []

        if dropped:
            logger.warning(f"{self._label()}Dropped {len(dropped)} pending task(s)")
        logger.debug(f"{self._label()}Starting recording tasks")

    def err_handler(self, handler: Optional[ErrorHandler]) -> None:
        """Register a callback invoked with the error that halts the queue."""
        self._err_handler = handler

    # =========================================================================
    # Queueing
    # =========================================================================

    def add(
        self,
        name: Union[str, TaskFn],
        fn: Optional[TaskFn] = None,
        force: bool = False,
        retry: Optional[RetryPolicy] = None,
    ) -> Optional[asyncio.Future]:
        """
        Queue a task.

        Args:
            name: Task name shown in logs; a callable may be passed alone
            fn: Sync or async callable run when the task's turn comes
            force: Queue even when the recorder is stopped or halted
            retry: Retry policy tried before the global retry() policies

        Returns:
            Future settled with the task result, or None when skipped
        """
        if fn is None and callable(name):
            fn, name = name, getattr(name, "__name__", repr(name))
        if fn is None:
            raise UsageError(f"Task {name!r} has nothing to run")

        if not self._running and not force:
            logger.debug(f"{self._label()}Skipped | {name}")
            return None

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        future.add_done_callback(_mark_retrieved)

        if self._error is not None and not force:
            future.set_exception(self._error)
            return future

        task = Task(
            name=name,
            fn=fn,
            future=future,
            retry_policy=retry,
            save_point=self._top_save_point(),
        )
        self._enqueue(task)
        self._scheduled.append(name)
        logger.debug(f"{self._label()}Queued | {name}")
        self._emit(RecorderEvent.QUEUED, task)

        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._drain())
        return future

    def throw(self, error: BaseException) -> Optional[asyncio.Future]:
        """Queue a task that raises `error` when reached."""
        def raise_error() -> None:
            raise error

        return self.add(f"throw error {error}", raise_error)

    def retry(self, policy: Union[RetryPolicy, Dict[str, Any], None] = None, **options: Any) -> RetryPolicy:
        """
        Install a retry policy for all subsequently failing tasks.

        Example:
            recorder.retry(RetryPolicy(retries=2, when=lambda e: isinstance(e, TimeoutError)))
            recorder.retry(retries=1)
        """
        if policy is None:
            policy = RetryPolicy(**options)
        elif isinstance(policy, dict):
            policy = RetryPolicy(**policy)
        elif not isinstance(policy, RetryPolicy):
            raise UsageError(f"Expected a RetryPolicy, got {policy!r}")

        self._retries.append(policy)
        logger.debug(f"{self._label()}Retry policy installed: {policy}")
        return policy

    def clear_retries(self) -> None:
        self._retries.clear()

    def catch_without_stop(self, handler: ErrorHandler) -> None:
        """
        Report errors of tasks in the current session through `handler` and
        keep the queue running. If `handler` raises, that error halts the queue.
        """
        save_point = self._top_save_point()
        if save_point is not None:
            save_point.catch_handler = handler
        else:
            self._catch_handler = handler

    # =========================================================================
    # Waiting
    # =========================================================================

    def promise(self) -> Awaitable[Any]:
        """Awaitable settled when everything queued so far has settled."""
        if self._pending:
            return self._follow(self._pending[-1].future)
        if self._current is not None and not self._current.future.done():
            return self._follow(self._current.future)
        if self._error is not None:
            return self._settled(error=self._error)
        return self._settled()

    async def wait(self, timeout: Optional[float] = None) -> Any:
        """
        Wait for the queue to drain.

        Args:
            timeout: Wall-clock limit in seconds; on expiry pending tasks are
                dropped via reset() and TaskTimeoutError is raised. The task
                in flight keeps running.
        """
        tail = self.promise()
        if timeout is None:
            return await tail

        done, _ = await asyncio.wait({tail}, timeout=timeout)
        if not done:
            pending = len(self._pending)
            current = self._current.name if self._current else None
            error = TaskTimeoutError(
                f"Steps did not finish in {timeout}s "
                f"(in flight: {current!r}, pending: {pending})"
            )
            logger.error(f"{self._label()}{error}")
            self.reset(error)
            raise error
        return tail.result()

    # =========================================================================
    # Events and introspection
    # =========================================================================

    def on(self, event: str, listener: Callable[..., Any]) -> Callable[..., Any]:
        """Subscribe to a RecorderEvent; returns the listener."""
        self._listeners[event].append(listener)
        return listener

    def off(self, event: str, listener: Callable[..., Any]) -> None:
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)

    def scheduled(self) -> str:
        """Names of all queued tasks with session markers, one per line."""
        return "\n".join(self._scheduled)

    def __str__(self) -> str:
        return f"Queue: {self._label()}\n\nTasks: {self.scheduled()}"

    # =========================================================================
    # Internals
    # =========================================================================

    def _label(self) -> str:
        save_point = self._top_save_point()
        session = f"<{save_point.name}> " if save_point else ""
        return f"[{self._queue_id}] {session}"

    def _top_save_point(self) -> Optional[SavePoint]:
        return self._save_points[-1] if self._save_points else None

    def _enqueue(self, task: Task) -> None:
        save_point = task.save_point
        if save_point is None or save_point.cursor is None:
            self._pending.append(task)
        else:
            position = save_point.cursor
            self._pending.insert(position, task)
            for holder in self._cursor_holders():
                if holder.cursor >= position:
                    holder.cursor += 1
        for open_save_point in self._save_points:
            open_save_point.tasks.append(task)

    def _cursor_holders(self) -> List[Union[SavePoint, Task]]:
        holders: List[Union[SavePoint, Task]] = [sp for sp in self._save_points if sp.cursor is not None]
        holders += [task for task in self._running_tasks if task.cursor is not None]
        return holders

    def _removed_at(self, position: int) -> None:
        for holder in self._cursor_holders():
            if holder.cursor > position:
                holder.cursor -= 1

    def _emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners[event]):
            try:
                listener(*args)
            except Exception as e:
                logger.warning(f"Listener for {event} failed: {e}")

    def _follow(self, future: asyncio.Future) -> asyncio.Future:
        follower = asyncio.shield(future)
        follower.add_done_callback(_mark_retrieved)
        return follower

    def _settled(self, error: Optional[BaseException] = None) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        future.add_done_callback(_mark_retrieved)
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(None)
        return future

    async def _drain(self) -> None:
        _current_task.set(None)
        while self._pending:
            task = self._pending.popleft()
            self._removed_at(0)
            if task.future.done():
                continue
            await self._run(task)

    async def _run(self, task: Task, position: int = 0) -> None:
        generation = self._queue_id
        self._current = task
        task.cursor = position
        self._running_tasks.append(task)
        self._emit(RecorderEvent.STARTED, task)
        try:
            result = await self._execute(task)
        except Exception as error:
            await self._fail(task, error, generation)
        else:
            if not task.future.done():
                task.future.set_result(result)
            self._emit(RecorderEvent.PASSED, task)
        finally:
            self._running_tasks.remove(task)
            task.cursor = None
            self._current = None

    async def _execute(self, task: Task) -> Any:
        while True:
            task.attempts += 1
            token = _current_task.set(task)
            try:
                result = task.fn()
                if inspect.isawaitable(result):
                    result = await result
                return result
            except Exception as error:
                policy = self._retry_policy_for(task, error)
                if policy is None or task.attempts > policy.retries:
                    raise
                logger.warning(
                    f"{self._label()}Retrying | {task.name} "
                    f"(attempt {task.attempts}/{policy.retries + 1} failed: {error})"
                )
                self._emit(RecorderEvent.RETRIED, task, error)
                delay = policy.delay_for(task.attempts)
                if delay:
                    await asyncio.sleep(delay)
            finally:
                _current_task.reset(token)

    async def _run_inline(self, save_point: SavePoint) -> Any:
        outer = self._current
        try:
            for task in list(save_point.tasks):
                if task.future.done():
                    continue
                position = self._remove_pending(task)
                if position is None:
                    continue
                await self._run(task, position)
        finally:
            self._current = outer
        last = save_point.tasks[-1].future
        if last.cancelled():
            return None
        return last.result()

    def _remove_pending(self, task: Task) -> Optional[int]:
        try:
            position = self._pending.index(task)
        except ValueError:
            return None
        del self._pending[position]
        self._removed_at(position)
        return position

    def _retry_policy_for(self, task: Task, error: BaseException) -> Optional[RetryPolicy]:
        if task.retry_policy is not None and task.retry_policy.matches(error):
            return task.retry_policy
        for policy in self._retries:
            if policy.matches(error):
                return policy
        return None

    async def _fail(self, task: Task, error: BaseException, generation: int) -> None:
        self._emit(RecorderEvent.FAILED, task, error)

        if generation != self._queue_id:
            # the queue was reset while this task was in flight
            logger.debug(f"{self._label()}Error after reset | {task.name}: {error}")
            if not task.future.done():
                task.future.set_exception(error)
            return

        save_point = task.save_point
        handler = save_point.catch_handler if save_point and save_point.catch_handler else self._catch_handler
        if handler is not None:
            logger.warning(f"{self._label()}Error | {task.name}: {error} (continuing)")
            try:
                outcome = handler(error)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as handler_error:
                error = handler_error
            else:
                if not task.future.done():
                    task.future.set_result(None)
                return

        self._halt(task, error)

    def _halt(self, task: Task, error: BaseException) -> None:
        if not task.future.done():
            task.future.set_exception(error)
        if error is self._error:
            # re-raised by the task that awaited the failing session
            return
        logger.error(f"{self._label()}Error | {task.name}: {error}")

        self._error = error
        dropped = list(self._pending)
        self._pending.clear()
        for pending in dropped:
            if not pending.future.done():
                pending.future.set_exception(error)
        for holder in self._cursor_holders():
            holder.cursor = 0

        self._emit(RecorderEvent.HALTED, error)
        if self._err_handler is not None:
            self._err_handler(error)


class _InlineRestore:
    """Awaitable returned by restore() inside a running task."""

    def __init__(self, recorder: Recorder, save_point: SavePoint):
        self._recorder = recorder
        self._save_point = save_point

    def __await__(self):
        return self._recorder._run_inline(self._save_point).__await__()


def _mark_retrieved(future: asyncio.Future) -> None:
    # errors are surfaced through promise(), err_handler and events
    if not future.cancelled():
        future.exception()


__all__ = [
    "Recorder",
    "RecorderEvent",
    "RecorderSession",
    "RetryPolicy",
    "SavePoint",
    "Task",
]
