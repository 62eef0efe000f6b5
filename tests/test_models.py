from datetime import datetime, timezone

import pytest

from tattoo_stencil.errors import InvalidParameterError
from tattoo_stencil.models import StencilPatch, StencilRecord


def make_record(**overrides) -> StencilRecord:
    values = dict(
        id="s1",
        name="Dragon",
        created_at=datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc),
        last_modified_at=datetime(2024, 3, 2, 10, 0, 0, 123456, tzinfo=timezone.utc),
        original_image_path="originals/s1.jpg",
        processed_image_path="processed/s1.png",
        thumbnail_path="cache/s1-thumb.jpg",
        width_cm=12.0,
        height_cm=18.0,
    )
    values.update(overrides)
    return StencilRecord(**values)


def test_record_defaults():
    record = make_record()
    assert record.contrast_level == 60
    assert record.brightness_level == 0
    assert record.rotation_degrees == 0
    assert record.paper_size == "A4"
    assert record.is_favorite is False
    assert record.last_exported_at is None


def test_record_serializes_to_plain_mapping():
    record = make_record(client_note="left forearm")
    data = record.to_dict()
    assert data["last_modified_at"] == "2024-03-02T10:00:00.123456Z"
    assert data["last_exported_at"] is None
    assert StencilRecord.from_dict(data) == record


def test_from_dict_ignores_unknown_fields():
    data = make_record().to_dict()
    data["legacy_field"] = True
    assert StencilRecord.from_dict(data).id == "s1"


def test_asset_paths_skip_missing_thumbnail():
    assert make_record(thumbnail_path=None).asset_paths == ["originals/s1.jpg", "processed/s1.png"]


def test_matches_name_or_note_case_insensitively():
    record = make_record(name="Rose Outline", client_note="Dragon request")
    assert record.matches("dragon")
    assert record.matches("OUTLINE")
    assert not record.matches("skull")
    assert not make_record(name="Rose").matches("dragon")


def test_patch_changes_only_include_supplied_fields():
    patch = StencilPatch(name="New", is_favorite=False)
    assert patch.changes() == {"name": "New", "is_favorite": False}
    assert not patch.needs_reprocessing


@pytest.mark.parametrize("field", StencilPatch.REPROCESS_FIELDS)
def test_visual_fields_trigger_reprocessing(field):
    value = 90 if field == "rotation_degrees" else (True if field.startswith("is_") else 10)
    assert StencilPatch(**{field: value}).needs_reprocessing


def test_patch_validation_normalizes_and_clamps():
    patch = StencilPatch(rotation_degrees=-90, contrast_level=130, brightness_level=-60).validated()
    assert patch.rotation_degrees == 270
    assert patch.contrast_level == 100
    assert patch.brightness_level == -50


@pytest.mark.parametrize(
    "patch",
    [StencilPatch(rotation_degrees=45), StencilPatch(width_cm=0), StencilPatch(width_cm=-3),
     StencilPatch(paper_size="B9")],
)
def test_patch_validation_rejects_bad_values(patch):
    with pytest.raises(InvalidParameterError):
        patch.validated()
