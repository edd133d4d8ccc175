"""Tests for candidate validation and defaults."""
import pytest
from pydantic import ValidationError as PydanticValidationError

from livevip_api.errors import ValidationError
from livevip_api.models import DEFAULT_CATEGORY
from livevip_api.validation import (
    NewStream,
    StreamChanges,
    json_type_name,
    normalize,
    normalize_changes,
    parse_viewers,
)


class TestNormalize:
    def test_applies_defaults(self):
        new = normalize({"title": "X", "streamer": "Y"})

        assert new.title == "X"
        assert new.streamer == "Y"
        assert new.viewers == 0
        assert new.category == DEFAULT_CATEGORY == "General"
        assert new.thumbnail == ""
        assert new.avatar == ""

    def test_keeps_provided_fields(self):
        new = normalize({
            "title": "Speedrun",
            "streamer": "ana",
            "thumbnail": "https://cdn.example/t.png",
            "viewers": "1200",
            "category": "Games",
            "avatar": "https://cdn.example/a.png",
        })

        assert new.viewers == 1200
        assert new.category == "Games"
        assert new.thumbnail == "https://cdn.example/t.png"
        assert new.avatar == "https://cdn.example/a.png"

    def test_trims_required_fields(self):
        new = normalize({"title": "  Late show ", "streamer": "\tbob\n"})
        assert new.title == "Late show"
        assert new.streamer == "bob"

    @pytest.mark.parametrize("candidate, field", [
        ({"streamer": "C"}, "title"),
        ({"title": "A"}, "streamer"),
        ({"title": "   ", "streamer": "C"}, "title"),
        ({"title": "A", "streamer": ""}, "streamer"),
        ({"title": None, "streamer": "C"}, "title"),
    ])
    def test_rejects_missing_required(self, candidate, field):
        with pytest.raises(ValidationError) as exc:
            normalize(candidate)
        assert exc.value.field == field

    @pytest.mark.parametrize("candidate", ["text", 3, None, ["a"]])
    def test_rejects_non_objects(self, candidate):
        with pytest.raises(ValidationError) as exc:
            normalize(candidate)
        assert exc.value.received == json_type_name(candidate)

    def test_rejects_structured_title(self):
        with pytest.raises(ValidationError):
            normalize({"title": {"nested": True}, "streamer": "C"})

    def test_rejects_overlong_title(self):
        with pytest.raises(ValidationError) as exc:
            normalize({"title": "x" * 256, "streamer": "C"})
        assert exc.value.field == "title"

    def test_empty_category_falls_back(self):
        assert normalize({"title": "A", "streamer": "B", "category": ""}).category == "General"


class TestParseViewers:
    @pytest.mark.parametrize("raw, expected", [
        (None, 0),
        ("", 0),
        ("abc", 0),
        (True, 0),
        ([], 0),
        (float("nan"), 0),
        (42, 42),
        ("42", 42),
        (" 17 watching", 17),
        ("3.9", 3),
        (3.9, 3),
        ("-5", -5),
        ("\u0661\u0662\u0663", 0),
        ("12\u0663", 12),
    ])
    def test_coercion(self, raw, expected):
        assert parse_viewers(raw) == expected

    def test_out_of_range_is_kept_for_the_model_to_reject(self):
        assert parse_viewers(2**40) == 2**40
        with pytest.raises(ValidationError) as exc:
            normalize({"title": "A", "streamer": "B", "viewers": 2**40})
        assert exc.value.field == "viewers"


class TestNormalizeChanges:
    def test_only_present_fields(self):
        assert normalize_changes({"viewers": 500}) == {"viewers": 500}

    def test_ignores_server_managed_and_unknown_keys(self):
        changes = normalize_changes({
            "id": 99,
            "created_at": "2020-01-01",
            "updated_at": "2020-01-01",
            "colour": "red",
            "title": "New",
        })
        assert changes == {"title": "New"}

    def test_required_field_cannot_be_blanked(self):
        with pytest.raises(ValidationError):
            normalize_changes({"streamer": "  "})

    def test_category_reset_to_default(self):
        assert normalize_changes({"category": None}) == {"category": "General"}

    def test_rejects_non_object(self):
        with pytest.raises(ValidationError):
            normalize_changes(["viewers", 5])


class TestStreamModels:
    def test_new_stream_is_frozen(self):
        new = NewStream(title="A", streamer="B")
        with pytest.raises(PydanticValidationError):
            new.title = "C"

    def test_new_stream_dump_has_every_column(self):
        assert normalize({"title": "A", "streamer": "B", "extra": 1}).model_dump() == {
            "title": "A",
            "streamer": "B",
            "thumbnail": "",
            "viewers": 0,
            "category": "General",
            "avatar": "",
        }

    def test_numbers_in_text_fields_become_strings(self):
        assert normalize({"title": 2024, "streamer": "B"}).title == "2024"

    def test_optional_text_is_trimmed(self):
        new = normalize({"title": "A", "streamer": "B", "category": " Music "})
        assert new.category == "Music"

    def test_changes_reject_null_required_field(self):
        with pytest.raises(ValidationError) as exc:
            normalize_changes({"title": None})
        assert exc.value.field == "title"

    def test_changes_model_leaves_unsent_fields_unset(self):
        changes = StreamChanges.model_validate({"avatar": ""})
        assert changes.model_dump(exclude_unset=True) == {"avatar": ""}
