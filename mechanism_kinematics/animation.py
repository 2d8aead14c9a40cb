"""
Cooperative, frame-driven joint animation.

Everything runs on the caller's thread: a ``FrameScheduler`` holds callbacks
for the next frame and delayed timers, and the host drives it by calling
``tick()`` once per rendered frame (or ``run_until_idle()`` when headless).
Each animation returns an ``AnimationHandle`` that is checked every frame,
so cancelling is deterministic.
"""

import heapq
import itertools
import logging
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .exceptions import ErrorCode, JointNotFoundError
from .fk_solver import ForwardKinematicsSolver
from .utils import KinematicsConfig

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]


def ease_in_out_quad(t: float) -> float:
    """Quadratic ease-in/ease-out on [0, 1]."""
    t = min(max(t, 0.0), 1.0)
    if t < 0.5:
        return 2.0 * t * t
    return 1.0 - ((-2.0 * t + 2.0) ** 2) / 2.0


class ManualClock:
    """Clock advanced explicitly, for headless stepping and tests."""

    def __init__(self, start: float = 0.0):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float) -> float:
        self.now += dt
        return self.now


class FrameScheduler:
    """Single-threaded frame and timer queue."""

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 frame_interval: float = 1.0 / 60.0):
        self.clock = clock
        self.frame_interval = frame_interval
        self._frame_callbacks: List[FrameCallback] = []
        self._timers: List[Tuple[float, int, FrameCallback]] = []
        self._sequence = itertools.count()

    def request_frame(self, callback: FrameCallback):
        """Run ``callback(now)`` on the next tick."""
        self._frame_callbacks.append(callback)

    def call_later(self, delay: float, callback: FrameCallback):
        """Run ``callback(now)`` on the first tick at least ``delay`` seconds from now."""
        heapq.heappush(self._timers, (self.clock() + delay, next(self._sequence), callback))

    @property
    def pending(self) -> bool:
        return bool(self._frame_callbacks or self._timers)

    def tick(self, now: Optional[float] = None) -> int:
        """
        Run one frame: queued frame callbacks and every timer that is due.

        Callbacks requested while this tick runs wait for the next one.

        Args:
            now: Frame time, defaults to the scheduler clock

        Returns:
            Number of callbacks run
        """
        if now is None:
            now = self.clock()

        callbacks, self._frame_callbacks = self._frame_callbacks, []
        while self._timers and self._timers[0][0] <= now:
            callbacks.append(heapq.heappop(self._timers)[2])

        for callback in callbacks:
            callback(now)
        return len(callbacks)

    def wait_frame(self):
        """Advance a ManualClock by one frame interval, or sleep for one."""
        if isinstance(self.clock, ManualClock):
            self.clock.advance(self.frame_interval)
        else:
            time.sleep(self.frame_interval)

    def run_until_idle(self, max_frames: int = 100000,
                       tick: Optional[Callable[[], int]] = None) -> int:
        """
        Tick until nothing is pending, waiting one frame interval between ticks.

        Args:
            max_frames: Upper bound on the number of frames
            tick: Frame function to call instead of ``self.tick``, for hosts
                that wrap each frame (e.g. in a lock)

        Returns:
            Number of frames ticked
        """
        tick = tick or self.tick
        frames = 0
        while self.pending and frames < max_frames:
            self.wait_frame()
            tick()
            frames += 1

        if self.pending:
            logger.warning(f"Scheduler still busy after {max_frames} frames")
        return frames

    def clear(self):
        self._frame_callbacks.clear()
        self._timers.clear()


class AnimationPhase(Enum):
    FORWARD = "forward"
    PAUSE = "pause"
    RETURN = "return"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class AnimationHandle:
    """Handle for an in-flight joint animation."""

    def __init__(self, joint_id: str, start_value: float, target_value: float, duration: float):
        self.joint_id = joint_id
        self.start_value = start_value
        self.target_value = target_value
        self.duration = duration
        self.phase = AnimationPhase.FORWARD
        self.last_value = start_value

    @property
    def cancelled(self) -> bool:
        return self.phase is AnimationPhase.CANCELLED

    @property
    def done(self) -> bool:
        return self.phase in (AnimationPhase.FINISHED, AnimationPhase.CANCELLED)

    def cancel(self) -> bool:
        """Stop the animation before its next frame; False if it already ended."""
        if self.done:
            return False
        self.phase = AnimationPhase.CANCELLED
        logger.debug(f"Cancelled animation of joint {self.joint_id}")
        return True

    def __repr__(self):
        return (f"AnimationHandle(joint_id={self.joint_id!r}, phase={self.phase.value}, "
                f"value={self.last_value:.4f})")


class JointAnimator:
    """Drives joints through their range of motion on a FrameScheduler."""

    def __init__(self, solver: ForwardKinematicsSolver, scheduler: FrameScheduler,
                 config: Optional[KinematicsConfig] = None):
        self.solver = solver
        self.scheduler = scheduler
        self.config = config or solver.config
        self._active: Dict[str, AnimationHandle] = {}
        self.last_error: Optional[ErrorCode] = None

    def animate_joint(self, joint_id: str, duration: Optional[float] = None,
                      on_update: Optional[Callable[[float], None]] = None) -> Optional[AnimationHandle]:
        """
        Ease a joint to its upper limit, pause, then ease back to where it started.

        A new animation of the same joint cancels the previous one. The first
        frame runs immediately; the rest run on scheduler ticks.

        Args:
            joint_id: Joint to animate
            duration: Seconds for each leg, defaults to ``animation_duration``
            on_update: Called with the requested value after every frame

        Returns:
            AnimationHandle, or None if the joint is unknown
        """
        try:
            joint = self.solver.registry.require_joint(joint_id)
        except JointNotFoundError as e:
            self.last_error = e.code
            logger.error(f"Cannot animate joint: {e}")
            return None
        self.last_error = None

        if duration is None:
            duration = self.config.animation_duration

        previous = self._active.get(joint_id)
        if previous is not None:
            previous.cancel()

        handle = AnimationHandle(joint_id, joint.value, joint.limits.upper, float(duration))
        self._active[joint_id] = handle

        self._run_leg(handle, handle.start_value, handle.target_value,
                      self.scheduler.clock(), on_update, returning=False)
        return handle

    def _run_leg(self, handle: AnimationHandle, from_value: float, to_value: float,
                 start_time: float, on_update, returning: bool):
        def frame(now: float):
            if handle.cancelled:
                self._forget(handle)
                return

            if handle.duration <= 0:
                progress = 1.0
            else:
                progress = min((now - start_time) / handle.duration, 1.0)
            value = from_value + (to_value - from_value) * ease_in_out_quad(progress)

            self.solver.update_joint_position(handle.joint_id, value)
            handle.last_value = value
            if on_update is not None:
                on_update(value)

            if progress < 1.0:
                self.scheduler.request_frame(frame)
            elif not returning:
                handle.phase = AnimationPhase.PAUSE
                self.scheduler.call_later(self.config.animation_return_delay, begin_return)
            else:
                handle.phase = AnimationPhase.FINISHED
                self._forget(handle)

        def begin_return(now: float):
            if handle.cancelled:
                self._forget(handle)
                return
            handle.phase = AnimationPhase.RETURN
            self._run_leg(handle, to_value, from_value, now, on_update, returning=True)

        frame(start_time)

    def _forget(self, handle: AnimationHandle):
        if self._active.get(handle.joint_id) is handle:
            del self._active[handle.joint_id]

    def get_active_animation(self, joint_id: str) -> Optional[AnimationHandle]:
        return self._active.get(joint_id)

    def cancel_all(self) -> int:
        handles = list(self._active.values())
        for handle in handles:
            handle.cancel()
        self._active.clear()
        return len(handles)
