import pytest

from tattoo_stencil.errors import InvalidParameterError
from tattoo_stencil.settings import AppSettings


def test_defaults_without_environment():
    settings = AppSettings.from_env({})
    assert settings == AppSettings()
    assert settings.default_contrast_level == 60
    assert settings.default_paper_size == "A4"
    assert settings.thermal_printer_mode is False


def test_environment_overrides_typed_fields():
    settings = AppSettings.from_env({
        "STENCIL_THERMAL_PRINTER_MODE": "yes",
        "STENCIL_DEFAULT_CONTRAST_LEVEL": "75",
        "STENCIL_DEFAULT_STENCIL_WIDTH_CM": "8.5",
        "STENCIL_DEFAULT_PAPER_SIZE": "Letter",
        "STENCIL_DARK_MODE_ENABLED": "0",
        "UNRELATED": "ignored",
    })
    assert settings.thermal_printer_mode is True
    assert settings.default_contrast_level == 75
    assert settings.default_stencil_width_cm == 8.5
    assert settings.default_paper_size == "Letter"
    assert settings.dark_mode_enabled is False


def test_contrast_default_is_clamped():
    assert AppSettings.from_env({"STENCIL_DEFAULT_CONTRAST_LEVEL": "250"}).default_contrast_level == 100


def test_unknown_paper_size_is_rejected():
    with pytest.raises(InvalidParameterError):
        AppSettings.from_env({"STENCIL_DEFAULT_PAPER_SIZE": "B9"})


def test_non_numeric_override_is_rejected():
    with pytest.raises(InvalidParameterError):
        AppSettings.from_env({"STENCIL_DEFAULT_CONTRAST_LEVEL": "high"})


def test_dict_round_trip_ignores_unknown_keys():
    data = AppSettings(enable_tiled_print=True).to_dict()
    data["retired_flag"] = 1
    assert AppSettings.from_dict(data).enable_tiled_print is True
