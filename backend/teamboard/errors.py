class TeamboardError(Exception):
    """teamboard 도메인 예외의 공통 부모"""


class RecordNotFound(TeamboardError):
    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class BandConflictError(TeamboardError):
    """strict 밴드 정책에서 같은 사람의 밴드가 기록마다 다를 때"""

    def __init__(self, person: str, bands: list[str]):
        super().__init__(f"Conflicting bands for {person!r}: {', '.join(bands)}")
        self.person = person
        self.bands = bands


class StoreUnavailable(TeamboardError):
    pass


class AccessDenied(TeamboardError):
    pass
