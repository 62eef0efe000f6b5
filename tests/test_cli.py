import json

import pytest

from tattoo_stencil.cli import build_parser, main


@pytest.fixture
def image_file(tmp_path, photo_bytes):
    path = tmp_path / "koi.png"
    path.write_bytes(photo_bytes)
    return path


def cli(tmp_path, *args):
    return main(["--data-dir", str(tmp_path / "catalog"), *args])


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_create_then_list(tmp_path, image_file, capsys):
    assert cli(tmp_path, "create", str(image_file), "--width", "10", "--name", "Koi") == 0
    created = json.loads(capsys.readouterr().out)
    assert created["name"] == "Koi"
    assert created["height_cm"] == pytest.approx(7.5)

    assert cli(tmp_path, "list") == 0
    listed = json.loads(capsys.readouterr().out)
    assert [s["id"] for s in listed] == [created["id"]]


def test_update_and_delete(tmp_path, image_file, capsys):
    cli(tmp_path, "create", str(image_file), "--width", "10")
    stencil_id = json.loads(capsys.readouterr().out)["id"]

    assert cli(tmp_path, "update", stencil_id, "--rotate", "90", "--favorite", "--note", "calf") == 0
    updated = json.loads(capsys.readouterr().out)
    assert updated["rotation_degrees"] == 90
    assert updated["is_favorite"] is True
    assert updated["client_note"] == "calf"

    assert cli(tmp_path, "delete", stencil_id) == 0
    capsys.readouterr()
    assert cli(tmp_path, "show", stencil_id) == 2


def test_invalid_image_exits_with_error(tmp_path, capsys):
    bogus = tmp_path / "notes.txt"
    bogus.write_text("not an image")
    assert cli(tmp_path, "create", str(bogus), "--width", "10") == 2
    assert "Error" in capsys.readouterr().err


def test_update_unknown_id_exits_with_error(tmp_path, capsys):
    assert cli(tmp_path, "update", "missing", "--name", "x") == 2


def test_update_flags_map_to_patch_fields():
    args = build_parser().parse_args(["update", "abc", "--no-mirror-h", "--contrast", "70"])
    assert args.is_mirrored_h is False
    assert args.contrast_level == 70
    assert args.is_mirrored_v is None
