"""Tests for configuration loading and precedence."""

import logging

import pytest

from envreplace.config import ConfigLoader, RunConfig, VersionInfo, split_list
from envreplace.exceptions import ConfigurationError


class TestSplitList:

    def test_flattens_repeated_and_comma_separated(self):
        assert split_list(['a.env,b.env', 'c.env']) == ['a.env', 'b.env', 'c.env']

    def test_string_and_none(self):
        assert split_list('APP_, DB_') == ['APP_', 'DB_']
        assert split_list(None) == []
        assert split_list(['', ' , ']) == []


class TestConfigLoader:
    """Test merging defaults, config file, environment and flags."""

    def test_defaults(self):
        config = ConfigLoader(environ={}).load({})
        assert config == RunConfig()
        assert config.on_error == 'stop'
        assert config.commit == 'copy'

    def test_cli_values(self):
        config = ConfigLoader(environ={}).load({
            'file': ['a.env,b.env'],
            'prefix': ['APP_'],
            'verbose': True,
            'quiet': None,
        })
        assert config.files == ['a.env', 'b.env']
        assert config.prefixes == ['APP_']
        assert config.verbose is True
        assert config.quiet is False

    def test_config_file(self, tmp_path):
        config_file = tmp_path / 'envreplace.yaml'
        config_file.write_text(
            "file:\n  - app.env\n  - other.env\n"
            "prefix: APP_\n"
            "on_error: continue\n"
            "commit: rename\n"
            "mask_values: true\n"
        )

        config = ConfigLoader(environ={}).load({}, config_file)

        assert config.files == ['app.env', 'other.env']
        assert config.prefixes == ['APP_']
        assert config.on_error == 'continue'
        assert config.commit == 'rename'
        assert config.mask_values is True

    def test_precedence_cli_over_environment_over_file(self, tmp_path):
        config_file = tmp_path / 'envreplace.yaml'
        config_file.write_text("file: from-file.env\nprefix: FILE_\n")
        environ = {'ENVREPLACE_FILE': 'from-env.env', 'ENVREPLACE_VERBOSE': 'true'}

        config = ConfigLoader(environ=environ).load({'file': ['from-cli.env']}, config_file)

        assert config.files == ['from-cli.env']
        assert config.prefixes == ['FILE_']
        assert config.verbose is True

    def test_environment_prefix_list(self):
        config = ConfigLoader(environ={'ENVREPLACE_PREFIX': 'APP_,DB_'}).load({})
        assert config.prefixes == ['APP_', 'DB_']

    def test_invalid_verbose_environment_value(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(environ={'ENVREPLACE_VERBOSE': 'maybe'}).load({})
        assert exc_info.value.exit_code == 2
        assert exc_info.value.errors[0].path == 'ENVREPLACE_VERBOSE'

    def test_unknown_field_rejected(self, tmp_path):
        config_file = tmp_path / 'envreplace.yaml'
        config_file.write_text("files: app.env\n")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(environ={}).load({}, config_file)
        assert "Unknown field 'files'" in str(exc_info.value)

    def test_wrong_types_rejected(self, tmp_path):
        config_file = tmp_path / 'envreplace.yaml'
        config_file.write_text("file: 3\nverbose: 'yes'\n")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(environ={}).load({}, config_file)
        assert len(exc_info.value.errors) == 2

    def test_bad_choice_rejected(self, tmp_path):
        config_file = tmp_path / 'envreplace.yaml'
        config_file.write_text("on_error: retry\n")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(environ={}).load({}, config_file)
        assert "'on_error' must be one of" in str(exc_info.value)

    def test_missing_config_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigLoader(environ={}).load({}, tmp_path / 'missing.yaml')

    def test_malformed_yaml(self, tmp_path):
        config_file = tmp_path / 'envreplace.yaml'
        config_file.write_text("file: [unclosed\n")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(environ={}).load({}, config_file)
        assert 'Failed to load config file' in str(exc_info.value)

    def test_non_mapping_yaml(self, tmp_path):
        config_file = tmp_path / 'envreplace.yaml'
        config_file.write_text("- app.env\n")

        with pytest.raises(ConfigurationError):
            ConfigLoader(environ={}).load({}, config_file)

    def test_empty_config_file_is_allowed(self, tmp_path):
        config_file = tmp_path / 'envreplace.yaml'
        config_file.write_text("")

        assert ConfigLoader(environ={}).load({}, config_file) == RunConfig()


class TestRunConfig:

    def test_require_files(self):
        with pytest.raises(ConfigurationError) as exc_info:
            RunConfig().require_files()
        assert 'files not provided' in str(exc_info.value)
        RunConfig(files=['a.env']).require_files()

    def test_logging_level(self):
        assert RunConfig().logging_level == logging.WARNING
        assert RunConfig(verbose=True).logging_level == logging.DEBUG
        assert RunConfig(quiet=True).logging_level == logging.ERROR
        assert RunConfig(log_level='info').logging_level == logging.INFO
        assert RunConfig(verbose=True, quiet=True).logging_level == logging.DEBUG


class TestVersionInfo:

    def test_defaults(self):
        info = VersionInfo.from_environment({})
        assert info.app_name == 'envreplace'
        assert info.branch == 'n/a'
        assert info.commit == 'n/a'
        assert info.build == 'n/a'

    def test_environment_overrides(self):
        info = VersionInfo.from_environment({
            'ENVREPLACE_BRANCH': 'main',
            'ENVREPLACE_COMMIT': 'abc123',
            'ENVREPLACE_BUILD': '42',
        })
        rendered = info.render()
        assert 'branch: main' in rendered
        assert 'commit: abc123' in rendered
        assert 'build: 42' in rendered
        assert 'python-version: ' in rendered
