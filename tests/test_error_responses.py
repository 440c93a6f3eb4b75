"""커스텀 에러 응답 형식 검증 테스트.

모든 에러가 {"error_code": "...", "message": "..."} 형식인지 확인한다.
"""


def test_error_has_error_code_and_message(client):
    """에러 응답에 error_code + message 필드가 존재한다."""
    resp = client.get("/api/tasks/unknown-task")
    data = resp.json()
    assert "error_code" in data, f"error_code 필드 없음: {data}"
    assert "message" in data, f"message 필드 없음: {data}"
    assert isinstance(data["error_code"], str)
    assert isinstance(data["message"], str)


def test_invalid_image_error_format(client, tmp_path):
    """존재하지 않는 경로 → 400 + INVALID_IMAGE 형식."""
    resp = client.post("/api/tasks", json={"imagePath": str(tmp_path / "missing.jpg")})
    assert resp.status_code == 400
    data = resp.json()
    assert data["error_code"] == "INVALID_IMAGE"
    assert len(data["message"]) > 0


def test_validation_error_format(client):
    """빈 imagePath → 422 + VALIDATION_ERROR 형식."""
    resp = client.post("/api/tasks", json={"imagePath": ""})
    assert resp.status_code == 422
    data = resp.json()
    assert data["error_code"] == "VALIDATION_ERROR"
    assert "imagePath" in data["message"]


def test_duplicate_error_format(client, make_image):
    """처리 중인 이미지 재등록 → 409 + DUPLICATE_IMAGE 형식."""
    path = make_image("dup.png", (32, 32))
    client.post("/api/tasks", json={"imagePath": path})

    resp = client.post("/api/tasks", json={"imagePath": path})
    assert resp.status_code == 409
    data = resp.json()
    assert data["error_code"] == "DUPLICATE_IMAGE"
    assert "message" in data
