"""
Clickonome - Qt timer service
Repeating and one-shot callbacks on the Qt event loop thread. The engine
uses it for the scheduler poll and for beat-aligned visual notifications.
"""

from typing import Callable

from PyQt6.QtCore import QObject, Qt, QTimer


class QtTimerHandle:
    def __init__(self, service: "QtTimerService", timer: QTimer):
        self._service = service
        self._timer = timer

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._service._release(self._timer)
        self._timer = None


class QtTimerService(QObject):
    """Creates precise QTimers parented to this object and keeps them alive until fired or cancelled."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._timers: set[QTimer] = set()

    def _make_timer(self, single_shot: bool) -> QTimer:
        timer = QTimer(self)
        timer.setTimerType(Qt.TimerType.PreciseTimer)
        timer.setSingleShot(single_shot)
        self._timers.add(timer)
        return timer

    def _release(self, timer: QTimer) -> None:
        if timer in self._timers:
            self._timers.discard(timer)
            timer.deleteLater()

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> QtTimerHandle:
        timer = self._make_timer(single_shot=False)
        timer.timeout.connect(callback)
        timer.start(max(1, int(round(interval_s * 1000))))
        return QtTimerHandle(self, timer)

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> QtTimerHandle:
        timer = self._make_timer(single_shot=True)
        handle = QtTimerHandle(self, timer)

        def fire():
            # Release before running so a cancel() from inside the callback is a no-op
            handle._timer = None
            self._release(timer)
            callback()

        timer.timeout.connect(fire)
        timer.start(max(0, int(round(delay_s * 1000))))
        return handle

    def cancel_all(self) -> None:
        for timer in list(self._timers):
            timer.stop()
            self._release(timer)
