"""Unit tests for rolegate.core.config: required signing key, defaults and validators."""

import os
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

from rolegate.core.config import CONFIG_FILE_ENV, DEFAULT_CASBIN_MODEL, Settings, parse_duration
from rolegate.core.database import build_database_url
from rolegate.policy import PolicyEngine, PolicyStore
from tests.helpers import make_database, make_settings

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "config" / "config.example.yaml"


class TestSigningKeyRequired(unittest.TestCase):
    def test_missing_secret_is_rejected(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValidationError):
                Settings(_env_file=None)

    def test_blank_secret_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(jwt={"secret": "   "})

    def test_secret_from_nested_env_var(self) -> None:
        with patch.dict(os.environ, {"JWT__SECRET": "from-env", "SERVER__PORT": "9090"}, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.jwt.secret.get_secret_value(), "from-env")
        self.assertEqual(settings.server.port, 9090)


class TestDefaults(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = make_settings()
        self.assertEqual(settings.app.default_role, "user")
        self.assertEqual(settings.server.port, 8080)
        self.assertEqual(settings.casbin.model, DEFAULT_CASBIN_MODEL)
        self.assertFalse(settings.ratelimiter.enabled)

    def test_escaped_newlines_in_model_are_expanded(self) -> None:
        settings = make_settings(casbin={"model": "[request_definition]\\nr = sub, obj, act"})
        self.assertEqual(settings.casbin.model, "[request_definition]\nr = sub, obj, act")

    def test_log_level_warn_alias(self) -> None:
        self.assertEqual(make_settings(log={"level": "WARN", "filename": None}).log.level, "warning")

    def test_invalid_log_level(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(log={"level": "loud"})

    def test_invalid_password_cost(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(password={"cost": 2})

    def test_non_hmac_algorithm_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(jwt={"secret": "s3cret", "algorithm": "RS256"})


class TestDurations(unittest.TestCase):
    def test_parse_duration(self) -> None:
        self.assertEqual(parse_duration("30s"), 30)
        self.assertEqual(parse_duration("1m"), 60)
        self.assertEqual(parse_duration("2h"), 7200)
        self.assertEqual(parse_duration("45"), 45)
        self.assertAlmostEqual(parse_duration("500ms"), 0.5)

    def test_invalid_duration(self) -> None:
        with self.assertRaises(ValueError):
            parse_duration("soon")

    def test_rate_limiter_period(self) -> None:
        rl = make_settings(ratelimiter={"period": "1m", "limit": 10}).ratelimiter
        self.assertTrue(rl.enabled)
        self.assertEqual(rl.period_seconds, 60)


class TestDatabaseUrl(unittest.TestCase):
    def test_url_from_discrete_keys(self) -> None:
        settings = make_settings(
            database={
                "host": "db.internal",
                "port": 6543,
                "user": "svc",
                "password": "p@ss",
                "dbname": "accounts",
                "sslmode": "require",
            }
        )
        url = build_database_url(settings.database)
        self.assertEqual(url.drivername, "postgresql+psycopg2")
        self.assertEqual(url.host, "db.internal")
        self.assertEqual(url.port, 6543)
        self.assertEqual(url.username, "svc")
        self.assertEqual(url.password, "p@ss")
        self.assertEqual(url.database, "accounts")
        self.assertEqual(url.query["sslmode"], "require")

    def test_explicit_url_wins(self) -> None:
        url = build_database_url(make_settings(database={"url": "sqlite:///tmp/x.db", "host": "ignored"}).database)
        self.assertEqual(url.get_backend_name(), "sqlite")


class TestExampleConfig(unittest.TestCase):
    def test_example_file_loads_and_matches_any_subject(self) -> None:
        env = {CONFIG_FILE_ENV: str(EXAMPLE_CONFIG), "JWT__SECRET": "from-env"}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)
        self.assertIn("keyMatch2", settings.casbin.model)
        self.assertEqual(settings.ratelimiter.limit, 0)

        db_engine, session_factory = make_database()
        self.addCleanup(db_engine.dispose)
        engine = PolicyEngine(settings.casbin.model, PolicyStore(session_factory))
        engine.bootstrap([("*", "/health", "GET"), ("user", "/users/:id", "GET")])
        self.assertTrue(engine.decide("anonymous", "/health", "GET"))
        self.assertTrue(engine.decide("user", "/users/3", "GET"))
        self.assertFalse(engine.decide("anonymous", "/users/3", "GET"))


if __name__ == "__main__":
    unittest.main()
