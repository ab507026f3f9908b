"""
API tests for the grading and configuration routes
"""
import cv2
import pytest
from fastapi.testclient import TestClient

from marksheet.core import Messages
from marksheet.grader import GradingSession
from marksheet.main import app
from marksheet.services import grading_service


def png_upload(page, name="page.png"):
    ok, encoded = cv2.imencode(".png", cv2.cvtColor(page, cv2.COLOR_RGBA2BGR))
    assert ok
    return {"file": (name, encoded.tobytes(), "image/png")}


@pytest.fixture
def client(sheet_config, tmp_path, monkeypatch):
    """Client against a fresh session using the test sheet layout"""
    original = grading_service.config
    monkeypatch.setattr(grading_service, "session", GradingSession())
    monkeypatch.setattr(grading_service, "exports_dir", tmp_path)
    grading_service.configure(sheet_config)

    yield TestClient(app)

    grading_service.configure(original)


@pytest.fixture
def graded(client, make_sheet, key_answers):
    """Client with a key and two graded pages"""
    client.post("/api/grading/key", files=png_upload(make_sheet("", key_answers)))
    client.post("/api/grading/pages/2", files=png_upload(make_sheet("1234567", key_answers)))
    client.post("/api/grading/pages/3", files=png_upload(make_sheet("7654321", [None] * 10)))
    return client


class TestBasics:
    """Test cases for service endpoints"""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_get_config(self, client, sheet_config):
        response = client.get("/api/config/")
        assert response.status_code == 200
        assert response.json()["questions_per_block"] == sheet_config.questions_per_block


class TestAnswerKey:
    """Test cases for the answer key"""

    def test_grade_without_key(self, client, make_sheet):
        """Test grading is refused before a key exists"""
        response = client.post("/api/grading/pages/2", files=png_upload(make_sheet("1", [1])))
        assert response.status_code == 400
        assert response.json()["error_code"] == "BAD_REQUEST"

    def test_set_key(self, client, make_sheet, key_answers):
        response = client.post("/api/grading/key", files=png_upload(make_sheet("", key_answers)))

        assert response.status_code == 200
        assert response.json()["answers"] == key_answers
        assert response.json()["message"] == Messages.KEY_SET
        assert len(response.json()["block_detections"]) == 2
        assert client.get("/api/grading/key").json()["correct_answers"] == key_answers

    def test_invalid_image(self, client):
        files = {"file": ("key.png", b"not an image", "image/png")}
        response = client.post("/api/grading/key", files=files)

        assert response.status_code == 422
        assert response.json()["error_code"] == "FILE_PROCESSING_ERROR"

    def test_unsupported_file_type(self, client, make_sheet):
        files = png_upload(make_sheet("", [1]), name="key.pdf")
        assert client.post("/api/grading/key", files=files).status_code == 422

    def test_correct_key_answer(self, graded):
        response = graded.put("/api/grading/key/1", json={"value": "5"})

        assert response.status_code == 200
        assert response.json()["correct_answers"][0] == 5
        # Stored results keep the old key until re-graded
        assert graded.get("/api/grading/results/2").json()["score"] == 10

        graded.post("/api/grading/regrade")
        assert graded.get("/api/grading/results/2").json()["score"] == 9

    def test_correct_key_answer_errors(self, graded):
        assert graded.put("/api/grading/key/99", json={"value": "1"}).status_code == 400
        assert graded.put("/api/grading/key/1", json={"value": "x"}).status_code == 400
        assert graded.put("/api/grading/key/0", json={"value": "1"}).status_code == 422


class TestPages:
    """Test cases for grading and correcting pages"""

    def test_grade_page(self, graded):
        result = graded.get("/api/grading/results/2").json()

        assert result["student_id"] == "1234567"
        assert result["score"] == result["max_score"] == 10
        assert len(result["details"]) == 10

    def test_regrade_same_page(self, graded, make_sheet):
        response = graded.post(
            "/api/grading/pages/2", files=png_upload(make_sheet("1234567", [None] * 10))
        )

        assert response.status_code == 200
        assert response.json()["result"]["score"] == 0
        results = graded.get("/api/grading/results").json()["results"]
        assert [r["page"] for r in results] == [2, 3]

    def test_analyze_does_not_grade(self, graded, make_sheet):
        response = graded.post(
            "/api/grading/pages/4/analyze", files=png_upload(make_sheet("5", [[1, 2]]))
        )

        assert response.status_code == 200
        assert response.json()["answers"][0] == "MULTIPLE"
        assert response.json()["flags"][0] == "multiple"
        first_row = response.json()["block_detections"][0]["cells"][:10]
        assert [c["flag"] for c in first_row[:3]] == ["valid", "valid", "blank"]
        assert graded.get("/api/grading/results/4").status_code == 404

    def test_correct_student_answer(self, graded):
        response = graded.put("/api/grading/results/3/answers/1", json={"value": "1"})

        assert response.status_code == 200
        assert response.json()["score"] == 1
        assert response.json()["details"][0]["student"] == 1

    def test_correct_student_answer_multiple(self, graded):
        response = graded.put("/api/grading/results/2/answers/1", json={"value": "1,2"})

        assert response.json()["details"][0]["student"] == "MULTIPLE"
        assert response.json()["score"] == 9

    def test_correct_student_answer_errors(self, graded):
        assert graded.put("/api/grading/results/9/answers/1", json={"value": "1"}).status_code == 404
        assert graded.put("/api/grading/results/2/answers/50", json={"value": "1"}).status_code == 400

    def test_correct_student_id(self, graded):
        response = graded.put("/api/grading/results/3/student-id", json={"student_id": "7654322"})

        assert response.status_code == 200
        assert response.json()["student_id"] == "7654322"
        assert graded.put(
            "/api/grading/results/9/student-id", json={"student_id": "1"}
        ).status_code == 404

    def test_clear_keeps_key(self, graded, key_answers):
        assert graded.delete("/api/grading/results").status_code == 200

        data = graded.get("/api/grading/results").json()
        assert data["results"] == []
        assert data["correct_answers"] == key_answers

    def test_summary(self, graded):
        summary = graded.get("/api/grading/summary").json()

        assert summary["total_pages"] == 2
        assert summary["max_score"] == 10
        assert summary["min_score"] == 0
        assert summary["average_score"] == 5.0


class TestConfig:
    """Test cases for changing the sheet layout"""

    def test_update_config(self, client, sheet_config):
        data = sheet_config.to_dict()
        data["num_blocks"] = 1

        response = client.put("/api/config/", json=data)

        assert response.status_code == 200
        assert grading_service.config.total_questions == 5

    def test_num_blocks_beyond_blocks(self, client, sheet_config):
        data = sheet_config.to_dict()
        data["num_blocks"] = 3

        response = client.put("/api/config/", json=data)

        assert response.status_code == 400
        assert response.json()["error_code"] == "CONFIGURATION_ERROR"

    def test_schema_bounds(self, client, sheet_config):
        data = sheet_config.to_dict()
        data["threshold"] = 300
        assert client.put("/api/config/", json=data).status_code == 422


class TestExports:
    """Test cases for result exports"""

    def test_csv(self, graded):
        response = graded.get("/api/grading/export/csv")

        lines = response.text.splitlines()
        assert response.status_code == 200
        assert lines[0].startswith("Page,Student ID,Score,Max Score,Q1")
        assert lines[1].startswith("2,1234567,10,10,")
        assert len(lines) == 3

    def test_excel_data(self, graded):
        data = graded.get("/api/grading/export/excel-data").json()

        assert data["headers"][0] == "Student ID"
        assert len(data["data_rows"]) == 2
        assert data["accuracy_row"][1] == 0.5

    def test_excel_file(self, graded, tmp_path):
        from openpyxl import load_workbook

        response = graded.post("/api/grading/export/excel")

        assert response.status_code == 200
        path = tmp_path / response.json()["file"]
        assert path.exists()

        ws = load_workbook(path).active
        assert ws.cell(row=1, column=1).value == "Student ID"
        assert ws.cell(row=4, column=1).value == "1234567"
        assert ws.cell(row=4, column=12).value.startswith("=SUMPRODUCT(")
        assert ws.cell(row=6, column=1).value == "Accuracy"

    def test_excel_without_results(self, client):
        assert client.post("/api/grading/export/excel").status_code == 404


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
