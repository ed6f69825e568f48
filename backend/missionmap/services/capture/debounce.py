# backend/missionmap/services/capture/debounce.py


class FinishTimer:
    """
    完成ジェスチャ（ダブルクリック）用の遅延トークン。
    直前のクリック処理が終わってから一度だけ発火させるため、
    期限を過ぎた時点で poll 側が is_due を見て fire する。
    """

    def __init__(self, delay: float, armed_at: float):
        self.delay = delay
        self.due_at = armed_at + delay
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def rearm(self, now: float) -> None:
        if self.pending:
            self.due_at = now + self.delay

    def cancel(self) -> None:
        self.cancelled = True

    def is_due(self, now: float) -> bool:
        return self.pending and now >= self.due_at

    def fire(self) -> None:
        self.fired = True
