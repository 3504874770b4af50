"""Tests for request signing helpers."""

import hashlib
import hmac

from omclient.infra.storage.client import AccessLevel
from omclient.infra.storage.signing import (
    build_signed_request,
    file_md5,
    md5_hex,
    object_message,
    serialize_attributes,
    sign,
    store_message,
)


class TestSign:
    def test_is_deterministic(self):
        assert sign("secret", "1700000000abc") == sign("secret", "1700000000abc")

    def test_matches_hmac_sha256_hex(self):
        expected = hmac.new(b"secret", b"1700000000abc", hashlib.sha256).hexdigest()
        assert sign("secret", "1700000000abc") == expected
        assert sign(b"secret", b"1700000000abc") == expected

    def test_depends_on_key_and_message(self):
        base = sign("secret", "1700000000abc")
        assert sign("other", "1700000000abc") != base
        assert sign("secret", "1700000001abc") != base


class TestCanonicalMessages:
    def test_object_message_concatenates_without_separator(self):
        assert object_message(1700000000, "abc123") == "1700000000abc123"

    def test_store_message_order(self):
        attributes_json = '{"access":"public"}'
        message = store_message(1700000000, "docs", "f" * 32, attributes_json)
        assert message == "1700000000docs" + "f" * 32 + md5_hex(attributes_json)


class TestFileMd5:
    def test_independent_of_chunk_size(self, sample_file):
        expected = hashlib.md5(sample_file.read_bytes()).hexdigest()
        assert file_md5(sample_file) == expected
        assert file_md5(sample_file, chunk_size=7) == expected
        assert file_md5(str(sample_file), chunk_size=1 << 20) == expected

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")
        assert file_md5(path) == hashlib.md5(b"").hexdigest()


class TestSerializeAttributes:
    def test_empty_and_missing_become_object(self):
        assert serialize_attributes(None) == "{}"
        assert serialize_attributes({}) == "{}"

    def test_compact_and_order_preserving(self):
        attributes = {"access": "protected", "ttl": 60, "mime_type": "text/plain"}
        assert (
            serialize_attributes(attributes)
            == '{"access":"protected","ttl":60,"mime_type":"text/plain"}'
        )

    def test_enum_values_are_written_as_strings(self):
        assert serialize_attributes({"access": AccessLevel.PUBLIC}) == '{"access":"public"}'

    def test_repeated_calls_give_same_bytes(self):
        attributes = {"access": "public", "cache_age": 3600, "custom": [1, 2]}
        assert serialize_attributes(attributes) == serialize_attributes(attributes)


class TestBuildSignedRequest:
    def test_time_first_and_signature_covers_message(self):
        request = build_signed_request("secret", 1700000000, {"id": "abc"}, "1700000000abc")

        assert request.time == 1700000000
        assert list(request.fields) == ["time", "id"]
        assert request.fields == {"time": "1700000000", "id": "abc"}
        assert request.signature == sign("secret", "1700000000abc")
        assert request.as_params() == {
            "time": "1700000000",
            "id": "abc",
            "signature": request.signature,
        }
