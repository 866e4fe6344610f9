"""
Tests for the developer utilities.
"""

import json

import pytest

from filetools_backend.processors import developer


class TestHashAndEncoding:
    """Tests for hashes, Base64 and URL encoding."""

    def test_sha256(self):
        assert developer.generate_hash("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_md5(self):
        assert developer.generate_hash("abc", "md5") == "900150983cd24fb0d6963f7d28e17f72"

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError):
            developer.generate_hash("abc", "crc32")

    def test_base64(self):
        assert developer.encode_base64("héllo") == "aMOpbGxv"
        assert developer.decode_base64("aMOpbGxv") == "héllo"

    def test_invalid_base64(self):
        with pytest.raises(ValueError, match="Invalid Base64 string"):
            developer.decode_base64("abc")

    def test_url_encoding_matches_component_encoding(self):
        assert developer.encode_url("a b&c=d/é") == "a%20b%26c%3Dd%2F%C3%A9"
        assert developer.decode_url("a%20b%26c") == "a b&c"


class TestJson:
    """Tests for format_json."""

    def test_valid_json(self):
        result = developer.format_json('{"a":[1,2]}', indent=2)
        assert result["valid"] is True
        assert json.loads(result["formatted"]) == {"a": [1, 2]}
        assert '\n  "a"' in result["formatted"]

    def test_invalid_json(self):
        result = developer.format_json("{broken")
        assert result["valid"] is False
        assert result["formatted"] == "{broken"
        assert result["error"]


class TestColors:
    """Tests for color parsing and conversion."""

    @pytest.mark.parametrize(
        "target,expected",
        [("hex", "#ff0000"), ("rgb", "rgb(255, 0, 0)"), ("hsl", "hsl(0, 100%, 50%)"), ("hsv", "hsv(0, 100%, 100%)")],
    )
    def test_convert_red(self, target, expected):
        assert developer.convert_color("#FF0000", target) == expected

    def test_short_hex(self):
        assert developer.parse_color("#0f0") == (0, 255, 0)

    def test_rgb_input(self):
        assert developer.convert_color("rgb(0, 0, 255)", "hex") == "#0000ff"

    def test_hsl_input(self):
        assert developer.parse_color("hsl(120, 100%, 50%)") == (0, 255, 0)

    def test_invalid_color(self):
        with pytest.raises(ValueError):
            developer.parse_color("not a color")

    def test_rgb_out_of_range(self):
        with pytest.raises(ValueError):
            developer.parse_color("rgb(300, 0, 0)")


class TestTimestamps:
    """Tests for convert_timestamp. Every output is UTC."""

    def test_unix_to_iso(self):
        assert developer.convert_timestamp("0", "unix", "iso") == "1970-01-01T00:00:00.000Z"

    def test_unix_to_readable(self):
        assert developer.convert_timestamp("0", "unix", "readable") == "01/01/1970, 12:00:00 AM UTC"

    def test_iso_to_unix(self):
        assert developer.convert_timestamp("2024-01-01T00:00:00Z", "iso", "unix") == "1704067200"

    def test_date_input(self):
        assert developer.convert_timestamp("2024-01-01", "date", "date") == "Mon Jan 01 2024"

    def test_invalid_input(self):
        with pytest.raises(ValueError, match="Invalid date/timestamp"):
            developer.convert_timestamp("soon", "iso", "unix")


class TestGenerators:
    """Tests for UUID and password generation."""

    def test_uuids_are_unique_v4(self):
        generated = developer.generate_uuids(5)
        assert len(set(generated)) == 5
        assert all(value[14] == "4" for value in generated)

    def test_password_respects_classes(self):
        password = developer.generate_password(
            length=64, include_uppercase=False, include_numbers=False, include_symbols=False
        )
        assert len(password) == 64
        assert password.islower()

    def test_password_excludes_similar(self):
        password = developer.generate_password(length=200, exclude_similar=True)
        assert not set(password) & set("0O1lI")

    def test_password_needs_a_class(self):
        with pytest.raises(ValueError):
            developer.generate_password(
                include_uppercase=False, include_lowercase=False, include_numbers=False, include_symbols=False
            )

    def test_strength(self):
        assert developer.analyze_password_strength("aaaa")["strength"] == "Very Weak"
        assert developer.analyze_password_strength("Xk9#mP2$vL7q")["strength"] == "Strong"


class TestQrCode:
    """Tests for QR code generation."""

    def test_png(self, tmp_path):
        destination = developer.generate_qr("https://example.com", tmp_path / "code.png", size=256)
        assert destination.read_bytes().startswith(b"\x89PNG")

    def test_svg(self, tmp_path):
        destination = developer.generate_qr("hello", tmp_path / "code.svg", error_correction="H")
        assert "<svg" in destination.read_text()


class TestDeveloperTools:
    """Tests for developer tools through the API."""

    def test_hash_generator(self, client):
        response = client.post("/api/tools/hash-generator/process", data={"text": "abc", "algorithm": "md5"})
        data = response.json()["data"]
        assert data["message"] == "Successfully generated MD5 hash"
        assert data["data"] == {"algorithm": "md5", "hash": "900150983cd24fb0d6963f7d28e17f72"}

    def test_invalid_base64_is_client_error(self, client):
        response = client.post("/api/tools/base64-encoder/process", data={"text": "abc", "operation": "decode"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid Base64 string"

    def test_invalid_url_escape_is_client_error(self, client):
        response = client.post("/api/tools/url-encoder/process", data={"text": "%ff", "operation": "decode"})
        assert response.status_code == 400

    def test_json_formatter_with_invalid_json(self, client):
        response = client.post("/api/tools/json-formatter/process", data={"json": "{nope"})
        data = response.json()["data"]
        assert data["message"] == "JSON formatted with errors"
        assert data["fileId"].endswith(".txt")

    def test_json_formatter_validate_only(self, client):
        response = client.post("/api/tools/json-formatter/process", data={"json": "[1]", "validateOnly": "true"})
        data = response.json()["data"]
        assert data["message"] == "JSON is valid"
        assert data["data"]["valid"] is True

    def test_qr_generator_svg(self, client):
        response = client.post("/api/tools/qr-generator/process", data={"text": "hello", "format": "svg"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["message"] == "Successfully generated QR code (SVG)"
        download = client.get(f"/api/download/{data['fileId']}")
        assert download.headers["content-type"].startswith("image/svg+xml")

    def test_color_picker_rejects_garbage(self, client):
        response = client.post("/api/tools/color-picker/process", data={"color": "blurple"})
        assert response.status_code == 400
        assert response.json()["error"] == "Unsupported color format"

    def test_password_generator(self, client):
        response = client.post("/api/tools/password-generator/process", data={"length": "20", "includeSymbols": "true"})
        data = response.json()["data"]
        assert len(data["data"]["password"]) == 20
        assert data["message"].startswith("Successfully generated")

    def test_password_length_below_minimum(self, client):
        response = client.post("/api/tools/password-generator/process", data={"length": "2"})
        assert response.status_code == 400
        assert response.json()["error"] == "Password Length must be at least 4"
