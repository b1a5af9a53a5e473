from knowlaw.utils.env import load_env_file
from knowlaw.utils.logging import configure_logging, get_logger


def test_log_level_from_env_file_filters_info(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.delenv("LOG_LEVEL")
    env_file = tmp_path / ".env"
    env_file.write_text("LOG_LEVEL=WARNING\n", encoding="utf-8")

    try:
        load_env_file(env_file)
        logger = get_logger("knowlaw.test")
        logger.info("hidden_info_event")
        logger.warning("shown_warning_event")
        out = capsys.readouterr().out
    finally:
        monkeypatch.undo()
        configure_logging(force=True)

    assert "hidden_info_event" not in out
    assert "shown_warning_event" in out
