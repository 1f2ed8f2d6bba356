import logging
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from roster_desk.config import (
    DEFAULT_TIMEOUT,
    ENV_API_BASE,
    ENV_LOG_LEVEL,
    ENV_TIMEOUT,
    ENV_TOKEN,
    configure_logging,
    load_settings,
)


class LoadSettingsTests(unittest.TestCase):
    def test_environment_values_are_cleaned(self):
        env = {ENV_API_BASE: " https://sched.example/api/ ", ENV_TOKEN: " tok ", ENV_TIMEOUT: "15", ENV_LOG_LEVEL: "info"}
        with mock.patch.dict(os.environ, env):
            settings = load_settings()
        self.assertEqual(settings.api_base, "https://sched.example/api")
        self.assertEqual(settings.token, "tok")
        self.assertEqual(settings.timeout, 15.0)
        self.assertEqual(settings.log_level, "INFO")

    def test_explicit_arguments_win(self):
        with mock.patch.dict(os.environ, {ENV_API_BASE: "https://env.example", ENV_TOKEN: "env-token"}):
            settings = load_settings(api_base="https://cli.example/", token="cli-token", timeout=3)
        self.assertEqual(settings.api_base, "https://cli.example")
        self.assertEqual(settings.token, "cli-token")
        self.assertEqual(settings.timeout, 3)

    def test_defaults(self):
        with mock.patch.dict(os.environ, {ENV_TIMEOUT: "", ENV_LOG_LEVEL: ""}):
            settings = load_settings()
        self.assertEqual(settings.timeout, DEFAULT_TIMEOUT)
        self.assertEqual(settings.log_level, "WARNING")

    def test_bad_timeout(self):
        for raw in ("soon", "0", "-5"):
            with mock.patch.dict(os.environ, {ENV_TIMEOUT: raw}):
                with self.assertRaisesRegex(ValueError, ENV_TIMEOUT):
                    load_settings()

    def test_dotenv_file_fills_missing_values(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            env_file = Path(tmpdir) / ".env"
            env_file.write_text(f"{ENV_API_BASE}=https://dotenv.example\n{ENV_TOKEN}=dotenv-token\n", encoding="utf-8")
            with mock.patch.dict(os.environ, {}, clear=True):
                settings = load_settings(env_file)
        self.assertEqual(settings.api_base, "https://dotenv.example")
        self.assertEqual(settings.token, "dotenv-token")


class ConfigureLoggingTests(unittest.TestCase):
    def tearDown(self):
        logging.getLogger("roster_desk").setLevel(logging.NOTSET)

    def test_sets_package_level_and_single_handler(self):
        configure_logging("debug")
        configure_logging("info")
        package_logger = logging.getLogger("roster_desk")
        self.assertEqual(package_logger.level, logging.INFO)
        self.assertEqual(len(package_logger.handlers), 1)

    def test_unknown_level_falls_back_to_warning(self):
        configure_logging("chatty")
        self.assertEqual(logging.getLogger("roster_desk").level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
