import tempfile
import tomllib
import unittest
from pathlib import Path

from escrow_auction.core.config import (
    AppConfig,
    InvalidConfigError,
    LoggingConfig,
    ValidatorConfig,
)


class AppConfigTestCase(unittest.TestCase):
    def test_defaults(self):
        config = AppConfig()
        self.assertEqual(config.logging, LoggingConfig(level="WARNING"))
        self.assertEqual(config.validator, ValidatorConfig(enforce_time_window=False))
        self.assertEqual(AppConfig.from_dict({}), config)

    def test_from_config_file(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            config_file = Path(tmp_dir) / "config.toml"
            config_file.write_text(
                """
[logging]
level = "debug"

[validator]
enforce_time_window = true
"""
            )

            config = AppConfig.from_config_file(config_file)

        self.assertEqual(config.logging.level, "DEBUG")
        self.assertTrue(config.validator.enforce_time_window)

    def test_partial_config_file(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            config_file = Path(tmp_dir) / "config.toml"
            config_file.write_text('[logging]\nlevel = "INFO"\n')

            config = AppConfig.from_config_file(config_file)

        self.assertEqual(config.logging.level, "INFO")
        self.assertFalse(config.validator.enforce_time_window)

    def test_invalid_config(self):
        for invalid in [
            {"validator": {"enforce_time_window": "yes"}},
            {"validator": {"enforce_time_window": 1}},
            {"logging": {"level": 10}},
        ]:
            with self.subTest(config=invalid):
                with self.assertRaises(InvalidConfigError):
                    AppConfig.from_dict(invalid)

        with self.subTest("invalid TOML"):
            with tempfile.TemporaryDirectory() as tmp_dir:
                config_file = Path(tmp_dir) / "config.toml"
                config_file.write_text("[validator\n")
                with self.assertRaises(tomllib.TOMLDecodeError):
                    AppConfig.from_config_file(config_file)


if __name__ == "__main__":
    unittest.main()
