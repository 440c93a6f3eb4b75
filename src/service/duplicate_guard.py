from model.store import TaskStore


def canonicalize(reference: str) -> str:
    """Windows/Unix 스타일 경로가 같은 값이 되도록 역슬래시를 '/'로 바꾼다."""
    return reference.strip().replace("\\", "/")


class DuplicateGuard:
    """이미 처리됐거나 처리 중인 원본의 재등록을 막는다.

    - image 색인에 변형 이미지가 하나라도 기록된 참조 → 중복
    - 아직 pending인 태스크의 참조 → 중복
    - failed 태스크의 참조는 막지 않는다 (재등록 가능)

    check-then-act라서 동시에 들어온 같은 참조 두 건이 모두 통과할 수 있다.
    결과는 처리 한 번이 중복될 뿐이라 허용한다.
    """

    def __init__(self, store: TaskStore):
        self._store = store

    def is_duplicate(self, reference: str) -> bool:
        canonical = canonicalize(reference)
        return self._store.has_images_for(canonical) or self._store.has_pending_task(canonical)
