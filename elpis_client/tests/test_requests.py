"""
Tests for sending requests: body encoding on the wire, multipart layout,
single use and transport error mapping.
"""

import json
import re
from pathlib import Path

import httpx
import pytest

from elpis_client.exceptions import (
    ElpisConnectError,
    ElpisTimeoutError,
    ElpisTransportError,
    InvalidURLError,
    RequestAlreadySentError,
)
from elpis_client.services.requests import (
    FormRequest,
    GetRequest,
    JsonRequest,
    MultipartRequest,
    encode_form_field,
)


ECHO_URL = "http://testserver/echo"


def mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def read_body(request) -> bytes:
    with request.open_body() as content:
        if content is None:
            return b""
        if isinstance(content, bytes):
            return content
        return b"".join(content)


class TestFormRequest:
    def test_form_body_is_echoed(self, http_client):
        request = FormRequest(ECHO_URL).set_parameter("name", "ds1")

        echoed = request.send(http_client).json()

        assert echoed["method"] == "POST"
        assert echoed["body"] == "name=ds1"
        assert echoed["headers"]["content-type"] == "application/x-www-form-urlencoded"

    def test_multiple_parameters_joined_with_ampersand(self, http_client):
        request = (
            FormRequest(ECHO_URL)
            .set_parameter("name", "ds 1")
            .set_parameter("file", ["a.wav", None, "b.eaf"])
            .set_parameters(["tier", "Phrase & Word", "dangling"])
        )

        echoed = request.send(http_client).json()

        assert echoed["body"] == "name=ds+1&file=a.wav&file=b.eaf&tier=Phrase+%26+Word"

    def test_body_is_streamed_one_chunk_per_parameter(self):
        request = FormRequest(ECHO_URL).set_parameter("a", "1").set_parameter("b", "2")

        with request.open_body() as content:
            chunks = list(content)

        assert chunks == [b"a=1", b"&b=2"]

    def test_empty_form_sends_empty_body(self, http_client):
        echoed = FormRequest(ECHO_URL).send(http_client).json()
        assert echoed["body"] == ""

    def test_non_string_values_are_stringified(self):
        request = FormRequest(ECHO_URL).set_parameter("ngram", 3).set_parameter("flag", True)
        assert request.body_text() == "ngram=3&flag=True"

    def test_str_shows_method_url_and_body(self):
        request = FormRequest(ECHO_URL).set_parameter("name", "ds1")
        assert str(request) == "POST http://testserver/echo : name=ds1"


class TestGetRequest:
    def test_parameters_go_into_query_string(self, http_client):
        request = GetRequest(ECHO_URL).set_parameter("name", "ds 1").set_parameter("n", 2)

        echoed = request.send(http_client).json()

        assert echoed["method"] == "GET"
        assert echoed["query"] == "name=ds+1&n=2"
        assert echoed["body"] == ""

    def test_existing_query_string_is_extended(self):
        request = GetRequest(ECHO_URL + "?a=1").set_parameter("b", "2")
        assert request.target_url() == ECHO_URL + "?a=1&b=2"

    def test_str_has_empty_body(self):
        assert str(GetRequest(ECHO_URL)) == "GET http://testserver/echo : "


class TestJsonRequest:
    def test_json_body_is_echoed(self, http_client):
        request = JsonRequest(ECHO_URL)
        request.set_json_parameter("tier", "Phrase")

        # Content-Type is in place before any body byte exists
        assert request.headers["Content-Type"] == "application/json;charset=utf-8"

        echoed = request.send(http_client).json()

        assert json.loads(echoed["body"]) == {"tier": "Phrase"}
        assert echoed["headers"]["content-type"] == "application/json;charset=utf-8"

    def test_overwriting_a_field(self):
        request = JsonRequest(ECHO_URL).set_json_parameter("name", "a").set_json_parameter("name", "b")
        assert request.generate_json() == '{"name":"b"}'

    def test_no_fields_sends_empty_body(self, http_client):
        request = JsonRequest(ECHO_URL)

        echoed = request.send(http_client).json()

        assert request.generate_json() is None
        assert echoed["body"] == ""

    def test_non_ascii_values(self, http_client):
        request = JsonRequest(ECHO_URL).set_json_parameter("lexicon", "ngā ŋ a\n")

        echoed = request.send(http_client).json()

        assert json.loads(echoed["body"]) == {"lexicon": "ngā ŋ a\n"}

    def test_str_shows_json(self):
        request = JsonRequest(ECHO_URL).set_json_parameter("name", "ds1")
        assert str(request) == 'POST http://testserver/echo : {"name":"ds1"}'


class TestHeadersAndCookies:
    def test_authorization_header(self, http_client):
        request = GetRequest(ECHO_URL, authorization="Bearer secret")

        echoed = request.send(http_client).json()

        assert echoed["headers"]["authorization"] == "Bearer secret"

    def test_last_header_value_wins(self):
        request = GetRequest(ECHO_URL).set_header("Accept", "text/plain").set_header("Accept", "application/json")
        assert request.build_headers()["Accept"] == "application/json"

    def test_cookies_sent_as_single_header(self, http_client):
        request = GetRequest(ECHO_URL).set_cookie("session", "abc").set_cookies({"lang": "mi"})

        echoed = request.send(http_client).json()

        assert echoed["headers"]["cookie"] == "session=abc; lang=mi"


class TestMultipartRequest:
    @pytest.fixture
    def audio_files(self, tmp_path: Path) -> list[Path]:
        first = tmp_path / "first.wav"
        first.write_bytes(b"RIFF-one")
        second = tmp_path / "second.eaf"
        second.write_bytes(b"<ANNOTATION_DOCUMENT/>")
        return [first, second]

    def test_two_file_parts_share_the_boundary(self, audio_files):
        request = MultipartRequest(ECHO_URL).set_parameter("file", audio_files)
        boundary = request.boundary

        body = read_body(request).decode("utf-8")

        assert body.count("Content-Disposition: form-data;") == 2
        assert 'name="file"; filename="first.wav"' in body
        assert 'name="file"; filename="second.eaf"' in body
        # Every part is opened by the boundary and the body is closed by it
        assert body.startswith(f"--{boundary}\r\n")
        assert body.count(f"--{boundary}\r\n") == 2
        assert body.endswith(f"\r\n--{boundary}--\r\n")
        parts = body.split(f"--{boundary}")
        assert parts[0] == ""
        assert parts[-1] == "--\r\n"
        assert len(parts) == 4

    def test_file_contents_follow_part_headers(self, audio_files):
        request = MultipartRequest(ECHO_URL).set_file("file", audio_files[0])

        body = read_body(request)

        assert b"\r\nContent-Type: audio/" in body
        assert b"\r\n\r\nRIFF-one\r\n" in body

    def test_text_parts_are_included(self):
        request = MultipartRequest(ECHO_URL).set_parameter("tier", "Phrase").set_parameter("skip", None)

        body = read_body(request).decode("utf-8")

        assert f'--{request.boundary}\r\nContent-Disposition: form-data; name="tier"\r\n\r\nPhrase\r\n' in body
        assert "skip" not in body

    def test_content_type_declares_boundary(self, http_client, audio_files):
        request = MultipartRequest(ECHO_URL).set_parameter("file", audio_files)

        echoed = request.send(http_client).json()

        assert echoed["headers"]["content-type"] == f"multipart/form-data; boundary={request.boundary}"
        filenames = re.findall(r'filename="([^"]*)"', echoed["body"])
        assert filenames == ["first.wav", "second.eaf"]

    def test_boundary_is_unique_per_request(self):
        assert MultipartRequest(ECHO_URL).boundary != MultipartRequest(ECHO_URL).boundary

    def test_quotes_in_filenames_are_escaped(self, tmp_path: Path):
        path = tmp_path / 'say "kia ora".wav'
        path.write_bytes(b"data")

        body = read_body(MultipartRequest(ECHO_URL).set_file("file", path)).decode("utf-8")

        assert 'filename="say %22kia ora%22.wav"' in body

    def test_str_does_not_read_files(self, audio_files):
        request = MultipartRequest(ECHO_URL).set_parameter("file", audio_files)

        text = str(request)

        assert text.startswith("POST http://testserver/echo : ")
        assert f"<{audio_files[0]}>" in text
        assert "RIFF-one" not in text

    def test_files_closed_after_transport_error(self, audio_files, monkeypatch):
        opened = []
        original_open = Path.open

        def recording_open(self, *args, **kwargs):
            handle = original_open(self, *args, **kwargs)
            opened.append(handle)
            return handle

        monkeypatch.setattr(Path, "open", recording_open)

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        request = MultipartRequest(ECHO_URL).set_parameter("file", audio_files)
        with pytest.raises(ElpisConnectError):
            request.send(mock_client(refuse))

        assert len(opened) == 2
        assert all(handle.closed for handle in opened)

    def test_missing_file_raises_os_error(self, tmp_path: Path, http_client):
        request = MultipartRequest(ECHO_URL).set_file("file", tmp_path / "missing.wav")

        with pytest.raises(FileNotFoundError):
            request.send(http_client)


class TestSingleUse:
    def test_second_send_raises(self, http_client):
        request = FormRequest(ECHO_URL).set_parameter("name", "ds1")
        request.send(http_client)

        with pytest.raises(RequestAlreadySentError):
            request.send(http_client)

    def test_setters_after_send_raise(self, http_client):
        request = JsonRequest(ECHO_URL)
        request.send(http_client)

        with pytest.raises(RequestAlreadySentError):
            request.set_json_parameter("name", "late")
        with pytest.raises(RequestAlreadySentError):
            request.set_header("Accept", "text/plain")

    @pytest.mark.parametrize("make_request", [FormRequest, GetRequest, MultipartRequest])
    def test_none_parameter_after_send_raises(self, http_client, make_request):
        request = make_request(ECHO_URL)
        request.send(http_client)

        with pytest.raises(RequestAlreadySentError):
            request.set_parameter("name", None)

    def test_none_json_parameter_after_send_raises(self, http_client):
        request = JsonRequest(ECHO_URL)
        request.send(http_client)

        with pytest.raises(RequestAlreadySentError):
            request.set_json_parameter("name", None)


class TestTransportErrors:
    def test_connect_error(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ElpisConnectError, match="Failed to connect"):
            FormRequest(ECHO_URL).set_parameter("name", "ds1").send(mock_client(refuse))

    def test_timeout(self):
        def stall(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(ElpisTimeoutError):
            GetRequest(ECHO_URL).send(mock_client(stall))

    def test_other_transport_failure(self):
        def drop(request: httpx.Request) -> httpx.Response:
            raise httpx.RemoteProtocolError("server disconnected", request=request)

        with pytest.raises(ElpisTransportError) as exc_info:
            JsonRequest(ECHO_URL).send(mock_client(drop))

        assert not isinstance(exc_info.value, (ElpisConnectError, ElpisTimeoutError))

    def test_unsupported_scheme(self):
        with httpx.Client() as client:
            with pytest.raises(InvalidURLError):
                GetRequest("ftp://example.com/api/").send(client)


def test_encode_form_field_example():
    assert encode_form_field("tier", "Phrase & Word") == "tier=Phrase+%26+Word"
