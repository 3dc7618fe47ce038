"""Test cases for BuildFarmConfig - loading and validating the client configuration."""

from pathlib import Path

import pytest

from buildfarm.config.build_farm_config import (
    BuildFarmConfig,
    load_config,
    DEFAULT_BUILD_PORT,
    DEFAULT_CVS_REPO
)
from buildfarm.core.exceptions import ConfigError


SAMPLE_CONFIG = Path(__file__).parent.parent / "examples" / "build-farm.yaml"


class TestBuildFarmConfig:
    """Test suite for BuildFarmConfig."""

    @pytest.fixture
    def minimal(self):
        return {
            'build_root': '/home/bf/root',
            'animal': 'dog',
            'target': 'http://collector.invalid/cgi-bin/pgstatus.pl',
            'secret': 'sekrit',
        }

    def test_defaults(self, minimal):
        config = BuildFarmConfig.from_dict(minimal)
        assert config.make == "make"
        assert config.scm == "cvs"
        assert config.scm_method == "export"
        assert config.force_every is None
        assert not config.keep_error_builds
        assert config.config_opts == []
        assert config.repository == DEFAULT_CVS_REPO

    def test_missing_required_keys(self, minimal):
        del minimal['secret']
        minimal['animal'] = ''
        with pytest.raises(ConfigError, match="animal"):
            BuildFarmConfig.from_dict(minimal)

    def test_unknown_keys_rejected(self, minimal):
        minimal['make_jobs'] = 4
        with pytest.raises(ConfigError, match="make_jobs"):
            BuildFarmConfig.from_dict(minimal)

    def test_invalid_scm(self, minimal):
        minimal['scm'] = 'svn'
        with pytest.raises(ConfigError):
            BuildFarmConfig.from_dict(minimal)

    def test_git_requires_repository(self, minimal):
        minimal['scm'] = 'git'
        config = BuildFarmConfig.from_dict(minimal)
        with pytest.raises(ConfigError, match="scmrepo"):
            config.repository

    def test_branch_ports(self, minimal):
        minimal['branch_ports'] = {'REL7_4_STABLE': 5699}
        config = BuildFarmConfig.from_dict(minimal)
        assert config.port_for('REL7_4_STABLE') == 5699
        assert config.port_for('HEAD') == DEFAULT_BUILD_PORT

    def test_workspace_name(self, minimal):
        assert BuildFarmConfig.from_dict(minimal).workspace_name(99) == "pgsql"
        minimal['scm_method'] = 'update'
        assert BuildFarmConfig.from_dict(minimal).workspace_name(99) == "pgsql.99"

    def test_empty_sections_from_yaml(self, tmp_path):
        path = tmp_path / "bf.yaml"
        path.write_text(
            "build_root: /root\nanimal: dog\ntarget: http://x\nsecret: s\n"
            "config_opts:\nbuild_env:\n"
        )
        config = load_config(str(path))
        assert config.config_opts == []
        assert config.build_env == {}

    def test_sample_config_loads(self):
        config = load_config(str(SAMPLE_CONFIG))
        assert config.animal == "my_animal"
        assert config.force_every == 24
        assert config.port_for("REL7_4_STABLE") == 5699
        assert config.config_env == {"CC": "ccache gcc"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("animal: [unterminated\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(str(path))

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(str(path))
