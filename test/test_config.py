import pytest

from dataverbs import config


def test_int_setting_default(monkeypatch):
    monkeypatch.delenv("DATAVERBS_TEST_SETTING", raising=False)
    assert config.int_setting("DATAVERBS_TEST_SETTING", 7) == 7


def test_int_setting_blank_uses_default(monkeypatch):
    monkeypatch.setenv("DATAVERBS_TEST_SETTING", "  ")
    assert config.int_setting("DATAVERBS_TEST_SETTING", 7) == 7


def test_int_setting_from_environment(monkeypatch):
    monkeypatch.setenv("DATAVERBS_TEST_SETTING", "42")
    assert config.int_setting("DATAVERBS_TEST_SETTING", 7) == 42


@pytest.mark.parametrize("raw", ["many", "1.5", "0", "-3"])
def test_int_setting_invalid(monkeypatch, raw):
    monkeypatch.setenv("DATAVERBS_TEST_SETTING", raw)
    with pytest.raises(ValueError, match="DATAVERBS_TEST_SETTING"):
        config.int_setting("DATAVERBS_TEST_SETTING", 7)


def test_display_defaults():
    assert config.DISPLAY_MAX_ROWS > 0
    assert config.DISPLAY_MAX_WIDTH > 0
