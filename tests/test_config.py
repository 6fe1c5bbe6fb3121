"""Tests for configuration loading and validation."""

import pytest
import yaml

from filterlab.config import DEFAULT_CONFIG_PATH, SimulationConfig, config_from_dict, load_config
from filterlab.filters import UnknownFilterType


class TestDefaults:

    def test_values(self, default_config):
        cfg = default_config
        assert cfg.dt == 0.05
        assert cfg.max_time == 30.0
        assert cfg.measurement_ratio == 2.0
        assert cfg.bootstrap_needed == 3
        assert cfg.measurement_noise == 15.0
        assert cfg.process_noise == 1.0
        assert cfg.imm_transition_matrix == ((0.94, 0.06), (0.06, 0.94))
        assert cfg.trajectory == "circle"
        assert cfg.filter_type == "kalman-2d"
        assert not cfg.symmetrize

    def test_derived(self, default_config):
        assert default_config.measurement_rate == pytest.approx(0.1)
        assert default_config.num_ticks == 601
        assert SimulationConfig(max_time=1.0).num_ticks == 21

    def test_shipped_yaml_matches_defaults(self, default_config):
        assert load_config() == default_config
        assert load_config(DEFAULT_CONFIG_PATH) == default_config

    def test_to_params(self, default_config):
        params = default_config.to_params()
        assert params.dt == 0.05
        assert params.measurement_noise == 15.0
        assert params.process_noise == 1.0


class TestLoading:

    def test_sections(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text(yaml.safe_dump({
            "sim": {"dt": 0.1, "max_time": 5.0, "bootstrap_measurements": 2, "seed": 9},
            "noise": {"measurement": 3.0, "process": 0.5},
            "filter": {"type": "IMM", "symmetrize": True},
            "imm": {"transition_matrix": [[0.9, 0.1], [0.2, 0.8]], "fast_factor": 5.0},
            "trajectory": {"type": "heart", "scale": 80.0},
        }))
        cfg = load_config(str(path))
        assert cfg.dt == 0.1
        assert cfg.bootstrap_needed == 2
        assert cfg.seed == 9
        assert cfg.measurement_noise == 3.0
        assert cfg.filter_type == "imm"
        assert cfg.symmetrize
        assert cfg.imm_transition_matrix == ((0.9, 0.1), (0.2, 0.8))
        assert cfg.imm_fast_factor == 5.0
        assert cfg.trajectory == "heart"
        assert cfg.trajectory_scale == 80.0
        # Untouched keys keep defaults
        assert cfg.measurement_ratio == 2.0

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(str(path)) == SimulationConfig()

    def test_unrelated_sections_ignored(self):
        assert config_from_dict({"monte_carlo": {"num_runs": 3}}) == SimulationConfig()


class TestValidation:

    @pytest.mark.parametrize("kwargs", [
        {"dt": 0.0},
        {"dt": -1.0},
        {"max_time": -1.0},
        {"measurement_ratio": 0.0},
        {"bootstrap_needed": 0},
        {"measurement_noise": -1.0},
        {"process_noise": -0.1},
        {"imm_transition_matrix": ((0.5, 0.6), (0.5, 0.5))},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            SimulationConfig(**kwargs)

    def test_unknown_filter(self):
        with pytest.raises(UnknownFilterType):
            SimulationConfig(filter_type="ukf")


class TestOverrides:

    def test_replaces_given_fields(self, default_config):
        cfg = default_config.with_overrides(process_noise=2.0)
        assert cfg.measurement_noise == 15.0
        assert cfg.process_noise == 2.0
        assert default_config.process_noise == 1.0

    def test_seed_can_be_cleared(self, default_config):
        """None is applied literally, so an override can unseed a seeded config."""
        assert default_config.seed == 42
        cfg = default_config.with_overrides(seed=None)
        assert cfg.seed is None
        assert cfg.with_overrides(seed=7).seed == 7

    def test_revalidated(self, default_config):
        with pytest.raises(ValueError):
            default_config.with_overrides(dt=0.0)

    def test_to_dict(self, default_config):
        d = default_config.to_dict()
        assert d["trajectory"] == "circle"
        assert d["bootstrap_needed"] == 3
