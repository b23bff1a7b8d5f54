import pytest

from infrastructure.external.cloudfiles.exceptions import (
    ArgumentError,
    ErrorKind,
    MetadataKeyError,
    MetadataValueError,
)
from infrastructure.external.cloudfiles.validators import (
    normalize_metadata,
    require,
    validate_container_name,
    validate_metadata_key,
    validate_metadata_value,
    validate_object_name,
)


@pytest.mark.parametrize("name", ["photos", "a" * 256, "with space", "ünïcode"])
def test_valid_container_names(name):
    assert validate_container_name(name) is True


@pytest.mark.parametrize("name", ["", None, 42, "a" * 257, "a/b", "what?"])
def test_invalid_container_names(name):
    assert validate_container_name(name) is False


def test_object_name_length_boundary():
    assert validate_object_name("o" * 128)
    assert not validate_object_name("o" * 129)
    assert validate_object_name("dir/sub/file.txt")
    assert not validate_object_name("")
    assert not validate_object_name(None)


def test_metadata_key_and_value_limits():
    assert validate_metadata_key("k" * 128)
    assert not validate_metadata_key("k" * 129)
    assert not validate_metadata_key("")
    assert validate_metadata_value("")
    assert validate_metadata_value("v" * 128)
    assert not validate_metadata_value("v" * 129)
    assert not validate_metadata_value(None)


def test_require_reports_first_empty_argument():
    with pytest.raises(ArgumentError) as exc:
        require(storage_url="https://x", container_name="", object_name=None)
    assert exc.value.argument == "container_name"
    assert exc.value.kind is ErrorKind.ARGUMENT
    assert isinstance(exc.value, ValueError)


def test_normalize_metadata_collapses_case_duplicates():
    result = normalize_metadata({"Color": "red", "color": "blue", "Size": 3})
    assert result == {"color": "blue", "Size": "3"}


def test_normalize_metadata_rejects_long_entries():
    with pytest.raises(MetadataKeyError):
        normalize_metadata({"k" * 129: "v"})
    with pytest.raises(MetadataValueError):
        normalize_metadata({"k": "v" * 129})


def test_normalize_metadata_empty():
    assert normalize_metadata(None) == {}
    assert normalize_metadata({"note": None}) == {"note": ""}


@pytest.mark.parametrize("name", ["/", "///"])
def test_slash_only_object_names_are_invalid(name):
    assert validate_object_name(name) is False


def test_leading_slash_object_name_is_valid():
    assert validate_object_name("/dir/file.txt")


@pytest.mark.parametrize("key", ["with space", "a:b", "line\nbreak", "tab\tkey", "ключ"])
def test_metadata_keys_must_be_header_tokens(key):
    assert validate_metadata_key(key) is False


def test_metadata_key_token_characters():
    assert validate_metadata_key("Temp-Url-Key_2.0")


@pytest.mark.parametrize("value", ["v\r\nX-Injected: 1", "a\nb", "nul\x00", "del\x7f"])
def test_metadata_values_reject_control_characters(value):
    assert validate_metadata_value(value) is False
    with pytest.raises(MetadataValueError):
        normalize_metadata({"k": value})


def test_metadata_value_allows_spaces_and_tabs():
    assert validate_metadata_value("two words\tand a tab")


def test_invalid_metadata_key_raises():
    with pytest.raises(MetadataKeyError):
        normalize_metadata({"bad key": "v"})
