"""
Tests for level filtering and quiet mode in the logger.

Run with: python -m pytest tests/test_logger.py -v
"""

from pagepilot.core.logger import Logger, get_logger, init_logger, set_quiet_mode


class TestLogger:

    def test_level_filtering(self, capsys):
        logger = Logger("WARNING")
        logger.info("hidden info")
        logger.warning("shown warning")
        out = capsys.readouterr().out
        assert "hidden info" not in out
        assert "shown warning" in out

    def test_quiet_mode_hides_tagged_chatter(self, capsys):
        logger = Logger("DEBUG", quiet_mode=True)
        logger.info("[CASCADE] stage result")
        logger.info("[PENDING] holding action")
        logger.info("[DISPATCH] applied")
        out = capsys.readouterr().out
        assert "stage result" not in out
        assert "holding action" not in out
        assert "[DISPATCH] applied" in out

    def test_set_quiet_mode_on_global_logger(self):
        init_logger("INFO")
        set_quiet_mode(True)
        assert get_logger().quiet_mode is True
        set_quiet_mode(False)
        assert get_logger().quiet_mode is False
