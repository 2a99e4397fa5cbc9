from gamemoded.profile import get_profile_state


def test_reads_first_line(tmp_path):
    path = tmp_path / "platform_profile"
    path.write_text("balanced\n")
    assert get_profile_state(path) == "balanced"


def test_missing_file_is_none(tmp_path):
    assert get_profile_state(tmp_path / "absent") == "none"


def test_empty_file_is_empty(tmp_path):
    path = tmp_path / "platform_profile"
    path.write_text("")
    assert get_profile_state(path) == ""


def test_leading_newlines_skipped(tmp_path):
    path = tmp_path / "platform_profile"
    path.write_text("\nperformance\nextra\n")
    assert get_profile_state(path) == "performance"


def test_long_value_truncated(tmp_path):
    path = tmp_path / "platform_profile"
    text = "p" * 100
    path.write_text(text + "\n")
    result = get_profile_state(path)
    assert len(result) == 63
    assert text.startswith(result)