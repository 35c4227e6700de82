"""
Unit tests for acquisition configuration
"""

import pytest

from feedguard.config import AcquisitionOptions, ConfigurationError, SourceConfig
from feedguard.resilience.backoff import BackoffKind


@pytest.mark.unit
class TestAcquisitionOptions:
    """Test cases for AcquisitionOptions"""

    def test_defaults(self):
        options = AcquisitionOptions()

        assert options.to_dict() == {
            'timeout_per_attempt': 3.0,
            'max_retries': 2,
            'base_delay': 0.5,
            'max_delay': 3.0,
            'backoff_kind': 'exponential',
            'enable_fallback': True,
        }

    def test_backoff_policy(self):
        policy = AcquisitionOptions(max_retries=4, backoff_kind="linear").backoff_policy()

        assert policy.max_retries == 4
        assert policy.kind is BackoffKind.LINEAR
        assert policy.total_attempts == 5

    def test_replace_validates(self):
        options = AcquisitionOptions()

        assert options.replace(enable_fallback=False).enable_fallback is False
        with pytest.raises(ConfigurationError):
            options.replace(timeout_per_attempt=0)

    @pytest.mark.parametrize("overrides", [
        {'timeout_per_attempt': -1.0},
        {'max_retries': -1},
        {'max_retries': 1.5},
        {'base_delay': 5.0, 'max_delay': 1.0},
        {'backoff_kind': 'fibonacci'},
    ])
    def test_invalid_options(self, overrides):
        with pytest.raises(ConfigurationError):
            AcquisitionOptions(**overrides)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            AcquisitionOptions(max_retries=-1)


@pytest.mark.unit
class TestFromEnv:
    """Test cases for reading options from the environment"""

    def test_empty_environment_gives_defaults(self):
        assert AcquisitionOptions.from_env(environ={}) == AcquisitionOptions()

    def test_reads_all_variables(self):
        environ = {
            'FEEDGUARD_TIMEOUT_PER_ATTEMPT': '1.5',
            'FEEDGUARD_MAX_RETRIES': '4',
            'FEEDGUARD_BASE_DELAY': '0.2',
            'FEEDGUARD_MAX_DELAY': '2',
            'FEEDGUARD_BACKOFF_KIND': ' Linear ',
            'FEEDGUARD_ENABLE_FALLBACK': 'off',
        }

        options = AcquisitionOptions.from_env(environ=environ)

        assert options.timeout_per_attempt == 1.5
        assert options.max_retries == 4
        assert options.base_delay == 0.2
        assert options.max_delay == 2.0
        assert options.backoff_kind is BackoffKind.LINEAR
        assert options.enable_fallback is False

    def test_blank_values_are_ignored(self):
        options = AcquisitionOptions.from_env(environ={'FEEDGUARD_MAX_RETRIES': '  '})
        assert options.max_retries == 2

    def test_custom_prefix(self):
        options = AcquisitionOptions.from_env(prefix="CAMS_", environ={'CAMS_MAX_RETRIES': '0'})
        assert options.max_retries == 0

    @pytest.mark.parametrize("name,raw", [
        ('FEEDGUARD_MAX_RETRIES', 'three'),
        ('FEEDGUARD_TIMEOUT_PER_ATTEMPT', 'soon'),
        ('FEEDGUARD_ENABLE_FALLBACK', 'maybe'),
        ('FEEDGUARD_BACKOFF_KIND', 'random'),
        ('FEEDGUARD_MAX_RETRIES', '-2'),
    ])
    def test_invalid_values(self, name, raw):
        with pytest.raises(ConfigurationError):
            AcquisitionOptions.from_env(environ={name: raw})

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv('FEEDGUARD_MAX_DELAY', '9')

        options = AcquisitionOptions.from_env(dotenv=False)

        assert options.max_delay == 9.0


@pytest.mark.unit
class TestSourceConfig:
    """Test cases for SourceConfig"""

    def test_defaults(self):
        config = SourceConfig.from_env(environ={})

        assert config.api_base == "http://localhost:8000/api"
        assert config.fallback_base == "data"
        assert not config.fallback_is_remote

    def test_from_env(self):
        config = SourceConfig.from_env(environ={
            'FEEDGUARD_API_BASE': 'https://cams.example.org/api',
            'FEEDGUARD_FALLBACK_BASE': 'https://cdn.example.org/fixtures',
        })

        assert config.api_base == 'https://cams.example.org/api'
        assert config.fallback_is_remote
