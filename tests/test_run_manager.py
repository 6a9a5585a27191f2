"""Tests for run directory management."""

import json
import logging

import pytest

from primefold.utils.log import LOGGER_NAME, setup_logger
from primefold.utils.run_manager import RunManager


@pytest.fixture
def manager(tmp_path):
    return RunManager(tmp_path / "output")


class TestRunManager:
    """Tests for RunManager."""

    def test_create_run_layout(self, manager):
        run = manager.create_run("search", "lahc primegen", config={"seed": 1}, tags=["lahc"])
        assert run.run_dir.parent == manager.runs_dir
        assert run.checkpoints_dir.is_dir()
        assert run.logs_dir.is_dir()
        assert "lahc_primegen" in run.metadata.run_id
        assert run.metadata.status == "running"
        assert run.load_config() == {"seed": 1}

        metadata = json.loads((run.run_dir / "metadata.json").read_text())
        assert metadata["run_type"] == "search"
        assert metadata["tags"] == ["lahc"]

    def test_same_second_runs_get_distinct_dirs(self, manager):
        first = manager.create_run("search", "same")
        second = manager.create_run("search", "same")
        assert first.run_dir != second.run_dir

    def test_get_run(self, manager):
        run = manager.create_run("comparison", "x")
        found = manager.get_run(run.metadata.run_id)
        assert found.metadata.run_type == "comparison"
        assert manager.get_run("missing") is None

    def test_list_runs_filters_by_type(self, manager):
        manager.create_run("search", "a")
        manager.create_run("comparison", "b")
        assert [r.metadata.run_type for r in manager.list_runs(run_type="search")] == ["search"]
        assert len(manager.list_runs()) == 2
        assert len(manager.list_runs(limit=1)) == 1

    def test_cleanup_dry_run_and_force(self, manager):
        runs = [manager.create_run("search", "keep") for _ in range(3)]
        would_delete = manager.cleanup_old_runs(keep_count=1)
        assert len(would_delete) == 2
        assert all(run.run_dir.exists() for run in runs)

        deleted = manager.cleanup_old_runs(keep_count=1, dry_run=False)
        assert deleted == would_delete
        assert len(manager.list_runs()) == 1


class TestRun:
    """Tests for a single Run."""

    def test_results_are_stamped(self, manager):
        run = manager.create_run("search", "r")
        assert run.load_results() is None
        run.save_results({"best_expr": "f(n) = n"})
        results = run.load_results()
        assert results["best_expr"] == "f(n) = n"
        assert results["_run_id"] == run.metadata.run_id
        assert "_completed_at" in results

    def test_checkpoint(self, manager):
        run = manager.create_run("search", "c")
        path = run.save_checkpoint({"iteration": 100}, "iter_000100")
        assert path.name == "checkpoint_iter_000100.json"
        assert json.loads(path.read_text()) == {"iteration": 100}

    def test_complete(self, manager):
        run = manager.create_run("search", "done")
        run.complete("stopped", summary={"best_score": 0.5})
        reloaded = manager.get_run(run.metadata.run_id)
        assert reloaded.metadata.status == "stopped"
        assert reloaded.metadata.summary == {"best_score": 0.5}
        assert reloaded.metadata.completed_at is not None

    def test_complete_rejects_unknown_status(self, manager):
        with pytest.raises(ValueError):
            manager.create_run("search", "bad").complete("exploded")


class TestSetupLogger:
    def test_file_handler_receives_debug(self, tmp_path):
        log_path = tmp_path / "search.log"
        logger = setup_logger(log_path)
        logging.getLogger(f"{LOGGER_NAME}.discovery").debug("hello from a module")
        for handler in logger.handlers:
            handler.flush()
        assert "hello from a module" in log_path.read_text()

    def test_handlers_replaced_on_repeat(self, tmp_path):
        setup_logger(tmp_path / "a.log")
        logger = setup_logger()
        assert len(logger.handlers) == 1
