"""Tests for central logging configuration and job id injection."""

import logging

from genctl.core.logging_config import configure_logging, job_id_var


def test_info_to_stdout_warning_to_stderr(capsys, restore_root_logging):
    configure_logging("INFO")
    log = logging.getLogger("genctl.test")

    log.info("tick done")
    log.warning("tick failed")

    captured = capsys.readouterr()
    assert "tick done" in captured.out
    assert "tick done" not in captured.err
    assert "tick failed" in captured.err
    assert "tick failed" not in captured.out


def test_job_id_injected(capsys, restore_root_logging):
    configure_logging("DEBUG")
    token = job_id_var.set("job-42")
    try:
        logging.getLogger("genctl.test").info("polling")
    finally:
        job_id_var.reset(token)

    assert "job=job-42" in capsys.readouterr().out


def test_reconfigure_replaces_handlers(restore_root_logging):
    configure_logging("INFO")
    configure_logging("WARNING")

    root = logging.getLogger()
    assert len(root.handlers) == 2
    assert root.level == logging.WARNING


def test_unknown_level_falls_back_to_info(restore_root_logging):
    configure_logging("chatty")
    assert logging.getLogger().level == logging.INFO
