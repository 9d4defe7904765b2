import pytest

from sgdktool import i18n


@pytest.fixture(autouse=True)
def restore_locale():
    saved = i18n.get_locale()
    yield
    i18n.set_locale(saved)


def test_detect_japanese_from_lang():
    assert i18n.detect_locale({"LANG": "ja_JP.UTF-8"}) == "ja"


def test_detect_defaults_to_english():
    assert i18n.detect_locale({}) == "en"


def test_detect_falls_back_to_lc_all():
    assert i18n.detect_locale({"LC_ALL": "ja_JP.UTF-8"}) == "ja"


def test_lang_takes_precedence_over_lc_all():
    assert i18n.detect_locale({"LANG": "en_US.UTF-8", "LC_ALL": "ja_JP"}) == "en"


def test_other_languages_map_to_english():
    assert i18n.detect_locale({"LANG": "fr_FR.UTF-8"}) == "en"


def test_init_locale_sets_active_locale():
    assert i18n.init_locale({"LANG": "ja"}) == "ja"
    assert i18n.get_locale() == "ja"
    assert i18n.init_locale({"LANG": "C"}) == "en"
    assert i18n.get_locale() == "en"


def test_placeholders_are_filled():
    i18n.set_locale("en")
    text = i18n.t("tool_found", tool="git", path="/usr/bin/git")
    assert "git" in text
    assert "/usr/bin/git" in text
    assert "%{" not in text


def test_locales_differ():
    i18n.set_locale("en")
    english = i18n.t("environment_check")
    i18n.set_locale("ja")
    japanese = i18n.t("environment_check")
    assert english != japanese
    assert japanese.strip()


def test_unknown_key_returns_key():
    i18n.set_locale("en")
    assert i18n.t("no_such_message") == "no_such_message"


def test_unknown_locale_falls_back_to_english():
    i18n.set_locale("en")
    english = i18n.t("project_exists", name="demo")
    i18n.set_locale("xx")
    assert i18n.t("project_exists", name="demo") == english


def test_missing_argument_leaves_placeholder():
    i18n.set_locale("en")
    assert "%{path}" in i18n.t("sgdk_path")