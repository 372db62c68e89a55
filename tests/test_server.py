"""Tests for the process entry point: startup order and exit codes."""

import os
import tempfile
import unittest
from unittest.mock import patch

from sqlalchemy import inspect

from rolegate import server
from rolegate.core.config import Settings
from rolegate.core.database import build_engine
from tests.helpers import make_settings


class ServerTestCase(unittest.TestCase):
    def setUp(self) -> None:
        for target in ("load_dotenv", "configure_logging"):
            patcher = patch.object(server, target)
            patcher.start()
            self.addCleanup(patcher.stop)
        uvicorn_patcher = patch.object(server.uvicorn, "run")
        self.uvicorn_run = uvicorn_patcher.start()
        self.addCleanup(uvicorn_patcher.stop)
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.dir = tmp.name

    def use_settings(self, settings: Settings) -> None:
        patcher = patch.object(server, "get_settings", return_value=settings)
        patcher.start()
        self.addCleanup(patcher.stop)


class TestExitCodes(ServerTestCase):
    def test_missing_secret_is_config_error(self) -> None:
        with patch.dict(os.environ, {}, clear=True), patch.object(
            server, "get_settings", side_effect=lambda: Settings(_env_file=None)
        ), patch("sys.stderr"):
            self.assertEqual(server.main(), server.EXIT_CONFIG_ERROR)
        self.uvicorn_run.assert_not_called()

    def test_unreachable_database(self) -> None:
        url = f"sqlite:///{os.path.join(self.dir, 'missing', 'nested', 'x.db')}"
        self.use_settings(make_settings(database={"url": url}))
        self.assertEqual(server.main(), server.EXIT_DATABASE_ERROR)
        self.uvicorn_run.assert_not_called()

    def test_migration_failure(self) -> None:
        self.use_settings(make_settings(database={"url": f"sqlite:///{os.path.join(self.dir, 'a.db')}"}))
        with patch.object(server, "run_migrations", side_effect=RuntimeError("bad revision")):
            self.assertEqual(server.main(), server.EXIT_MIGRATION_ERROR)
        self.uvicorn_run.assert_not_called()


class TestStartup(ServerTestCase):
    def test_migrates_then_serves(self) -> None:
        url = f"sqlite:///{os.path.join(self.dir, 'app.db')}"
        self.use_settings(make_settings(database={"url": url}, server={"port": 9099}))
        self.assertEqual(server.main(), server.EXIT_OK)

        self.uvicorn_run.assert_called_once()
        kwargs = self.uvicorn_run.call_args.kwargs
        self.assertEqual(kwargs["port"], 9099)
        self.assertIsNone(kwargs["log_config"])
        self.assertEqual(kwargs["timeout_graceful_shutdown"], 5)

        engine = build_engine(make_settings(database={"url": url}).database)
        self.addCleanup(engine.dispose)
        tables = set(inspect(engine).get_table_names())
        self.assertTrue({"roles", "users", "casbin_rule", "alembic_version"} <= tables)


if __name__ == "__main__":
    unittest.main()
