"""
Tests for File Tools Backend API endpoints.

Tests cover:
- Health checks
- Tool catalog listing and localized descriptors
- Tool processing (success envelope, file count, options, failures)
- Upload limits
- Downloads of generated artifacts
- Unknown routes
"""

import io

import pytest
from pypdf import PdfReader


def pdf_part(name, content):
    return ("files", (name, content, "application/pdf"))


class TestHealthCheck:
    """Tests for the health endpoints."""

    def test_api_health_returns_ok(self, client):
        """/api/health should return the success envelope."""
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "ok"}

    def test_root_health_includes_timestamp(self, client):
        """/health should also report the server time."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert "timestamp" in data


class TestToolCatalog:
    """Tests for GET /api/tools and GET /api/tools/{tool_id}."""

    def test_list_tools_returns_whole_catalog(self, client):
        """Every catalog tool is listed exactly once."""
        response = client.get("/api/tools")
        assert response.status_code == 200

        body = response.json()
        assert body["success"] is True
        ids = [tool["id"] for tool in body["data"]]
        assert len(ids) == 85
        assert len(set(ids)) == 85
        assert ids[0] == "pdf-merge"

    def test_list_entries_are_summaries(self, client):
        """Listing entries carry only id, name, category and description."""
        response = client.get("/api/tools")
        entry = response.json()["data"][0]
        assert set(entry) == {"id", "name", "category", "description"}
        assert entry["category"] == "pdf"

    def test_get_tool_descriptor(self, client):
        """A descriptor includes options in camelCase."""
        response = client.get("/api/tools/image-convert")
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["id"] == "image-convert"
        assert data["maxFiles"] == 1
        assert ".png" in data["acceptedFormats"]
        quality = next(option for option in data["options"] if option["name"] == "quality")
        assert quality["type"] == "range"
        assert quality["min"] == 1
        assert quality["max"] == 100
        assert quality["default"] == 80

    def test_get_unknown_tool_returns_404(self, client):
        """Unknown tool ids get the not-found envelope."""
        response = client.get("/api/tools/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Tool not found"}

    def test_localized_descriptor_by_query(self, client):
        """?lang= selects translated display text."""
        response = client.get("/api/tools/pdf-merge", params={"lang": "es"})
        data = response.json()["data"]
        assert data["name"] == "Combinar PDF"
        order = data["options"][0]
        assert order["options"] == ["original", "alphabetical"]
        assert order["choiceLabels"] == ["original", "alfabético"]
        assert response.headers["content-language"] == "es"

    def test_localized_descriptor_by_accept_language(self, client):
        """Accept-Language is used when no ?lang= is given."""
        response = client.get("/api/tools/pdf-merge", headers={"Accept-Language": "zh-CN,zh;q=0.9"})
        assert response.json()["data"]["name"] == "PDF合并"

    def test_unknown_language_falls_back_to_english(self, client):
        """A language without translations yields the catalog text."""
        response = client.get("/api/tools/pdf-merge", params={"lang": "xx"})
        assert response.json()["data"]["name"] == "Merge PDF"
        assert response.headers["content-language"] == "en"


class TestProcessTool:
    """Tests for POST /api/tools/{tool_id}/process."""

    def test_unknown_tool_writes_nothing(self, client, upload_dir, pdf_factory):
        """An unsupported tool is rejected before any upload is stored."""
        before = set(upload_dir.iterdir())
        response = client.post(
            "/api/tools/not-a-tool/process",
            files=[pdf_part("a.pdf", pdf_factory(1))],
        )
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Unsupported tool"}
        assert set(upload_dir.iterdir()) == before

    def test_merge_pdfs(self, client, upload_dir, pdf_factory):
        """Merging two PDFs yields one PDF with all their pages."""
        response = client.post(
            "/api/tools/pdf-merge/process",
            files=[pdf_part("a.pdf", pdf_factory(2)), pdf_part("b.pdf", pdf_factory(3))],
        )
        assert response.status_code == 200

        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["message"] == "Successfully merged 2 PDF files"
        assert data["fileId"].startswith("merged_")
        assert data["fileId"].endswith(".pdf")
        assert body["downloadUrl"] == f"/api/download/{data['fileId']}"
        assert "additionalFiles" not in data

        download = client.get(body["downloadUrl"])
        assert download.status_code == 200
        assert download.headers["content-type"] == "application/pdf"
        assert int(download.headers["content-length"]) == data["fileSize"]
        assert len(PdfReader(io.BytesIO(download.content)).pages) == 5

        # Inputs never outlive the request
        assert list(upload_dir.iterdir()) == []

    def test_merge_requires_two_files(self, client, pdf_factory):
        """A single PDF is not enough to merge."""
        response = client.post("/api/tools/pdf-merge/process", files=[pdf_part("a.pdf", pdf_factory(1))])
        assert response.status_code == 400
        assert response.json()["error"] == "At least 2 PDF files are required for merging"

    def test_split_pdf_returns_additional_files(self, client, pdf_factory):
        """Each page range becomes its own artifact."""
        response = client.post(
            "/api/tools/pdf-split/process",
            files=[pdf_part("doc.pdf", pdf_factory(3))],
            data={"pageRanges": "1-1,2-3"},
        )
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["message"] == "Successfully split PDF into 2 parts"
        assert len(data["additionalFiles"]) == 1

        second = client.get(f"/api/download/{data['additionalFiles'][0]}")
        assert len(PdfReader(io.BytesIO(second.content)).pages) == 2

    def test_split_with_range_past_end_is_rejected(self, client, pdf_factory):
        """Ranges selecting no page are a client error."""
        response = client.post(
            "/api/tools/pdf-split/process",
            files=[pdf_part("doc.pdf", pdf_factory(1))],
            data={"pageRanges": "5-6"},
        )
        assert response.status_code == 400

    def test_text_tool_without_files(self, client):
        """Text tools accept pasted text in the form."""
        response = client.post(
            "/api/tools/word-counter/process",
            data={"text": "one two three. four five!"},
        )
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["message"] == "Text analysis completed"
        assert data["data"]["words"] == 5
        assert data["data"]["sentences"] == 2

    def test_text_tool_reads_uploaded_file(self, client):
        """An uploaded .txt stands in for the text option."""
        response = client.post(
            "/api/tools/case-converter/process",
            files=[("files", ("notes.txt", b"hello world", "text/plain"))],
            data={"caseType": "uppercase"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["data"]["result"] == "HELLO WORLD"

    def test_missing_required_text(self, client):
        """No text and no file is a 400 with the tool's message."""
        response = client.post("/api/tools/word-counter/process", data={})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Text input is required"}

    def test_invalid_select_value(self, client):
        """A choice outside the declared list is rejected."""
        response = client.post(
            "/api/tools/hash-generator/process",
            data={"text": "abc", "algorithm": "sha3"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid Hash Algorithm: sha3"

    def test_number_out_of_range(self, client, png_bytes):
        """Numeric options outside min/max are rejected."""
        response = client.post(
            "/api/tools/image-compress/process",
            files=[("files", ("pic.png", png_bytes, "image/png"))],
            data={"quality": "150"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Quality (%) must be at most 100"

    def test_tool_without_files_rejects_uploads(self, client, png_bytes):
        """File-less tools refuse uploaded files."""
        response = client.post(
            "/api/tools/uuid-generator/process",
            files=[("files", ("pic.png", png_bytes, "image/png"))],
        )
        assert response.status_code == 400
        assert response.json()["error"] == "This tool does not accept files"

    def test_missing_ffmpeg_is_processing_failure(self, client, upload_dir):
        """A routine failure becomes a 500 with the tool's failure message."""
        response = client.post(
            "/api/tools/video-convert/process",
            files=[("files", ("clip.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4"))],
        )
        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Failed to convert video. Please ensure FFmpeg is installed.",
        }
        assert list(upload_dir.iterdir()) == []

    def test_invalid_pdf_is_processing_failure(self, client):
        """Corrupt input is reported with the tool's failure message."""
        response = client.post(
            "/api/tools/pdf-merge/process",
            files=[pdf_part("a.pdf", b"not a pdf"), pdf_part("b.pdf", b"also not a pdf")],
        )
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to merge PDF files. Please ensure all files are valid PDFs."


class TestUploadLimits:
    """Tests for upload intake limits."""

    def test_too_many_files(self, client, upload_dir, pdf_factory):
        """More parts than the configured maximum are rejected."""
        document = pdf_factory(1)
        parts = [pdf_part(f"f{index}.pdf", document) for index in range(11)]
        response = client.post("/api/tools/pdf-merge/process", files=parts)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Too many files. Maximum is 10"}
        assert list(upload_dir.iterdir()) == []

    def test_file_too_large(self, client, upload_dir, monkeypatch):
        """A part above the size ceiling gets a 413."""
        from filetools_backend.main import intake

        monkeypatch.setattr(intake, "max_file_size_bytes", 1024 * 1024)
        response = client.post(
            "/api/tools/hash-generator/process",
            files=[("files", ("big.txt", b"a" * (1024 * 1024 + 1), "text/plain"))],
        )
        assert response.status_code == 413
        assert response.json() == {"success": False, "error": "File too large. Maximum size is 1MB"}
        assert list(upload_dir.iterdir()) == []


class TestDownload:
    """Tests for GET /api/download/{filename}."""

    def test_missing_file_returns_404(self, client):
        """Unknown names are not found."""
        response = client.get("/api/download/nothing-here.pdf")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "File not found"}

    def test_download_text_artifact(self, client):
        """Text artifacts are served as text/plain."""
        response = client.post("/api/tools/uuid-generator/process", data={"count": "3"})
        body = response.json()
        assert body["data"]["message"] == "Successfully generated 3 UUIDs"

        download = client.get(body["downloadUrl"])
        assert download.status_code == 200
        assert download.headers["content-type"].startswith("text/plain")
        assert len(download.text.splitlines()) == 3

    def test_expired_artifact_is_gone(self, client, monkeypatch):
        """An artifact past its retention window cannot be downloaded."""
        from filetools_backend.main import lifecycle

        response = client.post("/api/tools/password-generator/process", data={"length": "16"})
        url = response.json()["downloadUrl"]

        real_clock = lifecycle.clock
        monkeypatch.setattr(lifecycle, "clock", lambda: real_clock() + lifecycle.retention_seconds + 1)
        download = client.get(url)
        assert download.status_code == 404

    def test_range_request_gets_whole_file(self, client):
        """Range headers are ignored and the complete artifact is sent."""
        response = client.post("/api/tools/uuid-generator/process", data={"count": "3"})
        data = response.json()["data"]

        download = client.get(f"/api/download/{data['fileId']}", headers={"Range": "bytes=0-3"})
        assert download.status_code == 200
        assert len(download.content) == data["fileSize"]
        assert "content-range" not in download.headers
        assert download.headers["accept-ranges"] == "none"

    def test_same_upload_name_after_eviction_gets_new_id(self, client, monkeypatch):
        """A converted file keeps its name for display only; its id is never reused."""
        from filetools_backend.main import lifecycle

        def convert(content):
            response = client.post(
                "/api/tools/document-format-converter/process",
                files=[("files", ("report.txt", content, "text/plain"))],
                data={"format": "html"},
            )
            assert response.status_code == 200
            return response.json()["data"]

        first = convert(b"First report")
        assert first["fileName"] == "report.html"
        download = client.get(f"/api/download/{first['fileId']}")
        assert "report.html" in download.headers["content-disposition"]

        real_clock = lifecycle.clock
        monkeypatch.setattr(lifecycle, "clock", lambda: real_clock() + lifecycle.retention_seconds + 1)
        assert client.get(f"/api/download/{first['fileId']}").status_code == 404

        second = convert(b"Second report")
        assert second["fileId"] != first["fileId"]
        assert client.get(f"/api/download/{first['fileId']}").status_code == 404
        assert b"Second report" in client.get(f"/api/download/{second['fileId']}").content


class TestNotFound:
    """Tests for unknown routes."""

    def test_unknown_api_route(self, client):
        """Unknown paths get the API-not-found envelope."""
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "API not found"}

    @pytest.mark.parametrize("method", ["put", "delete"])
    def test_wrong_method_is_not_found_shape(self, client, method):
        """Unsupported methods still get a failure envelope."""
        response = getattr(client, method)("/api/tools")
        assert response.status_code == 405
        assert response.json()["success"] is False
