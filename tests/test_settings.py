import json
import logging

from gatekeeper.settings import (
    DEFAULTS,
    GatekeeperConfig,
    load_config,
    load_settings,
    save_config,
)


class TestGatekeeperConfig:
    def test_defaults(self):
        cfg = GatekeeperConfig()
        assert cfg.allowed_country_codes == ["EG"]
        assert cfg.country_code_json_key == "country"
        assert cfg.remote_control_url == ""
        assert cfg.remote_fail_closed is False
        assert cfg.request_timeout == 10.0

    def test_poll_interval_minimum(self):
        assert GatekeeperConfig(remote_poll_seconds=0).remote_poll_seconds == 1.0
        assert GatekeeperConfig(remote_poll_seconds=0.2).remote_poll_seconds == 1.0
        assert GatekeeperConfig(remote_poll_seconds=30).remote_poll_seconds == 30.0

    def test_country_codes_normalised(self):
        cfg = GatekeeperConfig(allowed_country_codes=[" eg ", "us", ""])
        assert cfg.allowed_country_codes == ["EG", "US"]
        assert cfg.is_country_allowed("eg")
        assert not cfg.is_country_allowed("FR")
        assert not cfg.is_country_allowed(None)

    def test_digests_lowercased(self):
        cfg = GatekeeperConfig(lock_code_hash_hex=" ABCDEF ")
        assert cfg.lock_code_hash_hex == "abcdef"

    def test_shutdown_message_override(self):
        cfg = GatekeeperConfig(block_message_shutdown="Off")
        cfg.override_shutdown_message("Maintenance")
        assert cfg.shutdown_message == "Maintenance"

    def test_from_dict_ignores_unknown_keys(self):
        cfg = GatekeeperConfig.from_dict({"remote_control_url": "https://x", "bogus": 1})
        assert cfg.remote_control_url == "https://x"

    def test_mistyped_values_fall_back_to_defaults(self, caplog):
        with caplog.at_level(logging.WARNING, logger="gatekeeper.settings"):
            cfg = GatekeeperConfig.from_dict({
                "remote_poll_seconds": "fast",
                "lock_code_hash_hex": 5,
                "allowed_country_codes": "EG",
                "geo_fallbacks": ["locale_country", 3],
                "remote_fail_closed": "yes",
                "request_timeout": True,
            })
        assert cfg.remote_poll_seconds == DEFAULTS["remote_poll_seconds"]
        assert cfg.lock_code_hash_hex == ""
        assert cfg.allowed_country_codes == ["EG"]
        assert cfg.geo_fallbacks == DEFAULTS["geo_fallbacks"]
        assert cfg.remote_fail_closed is False
        assert cfg.request_timeout == DEFAULTS["request_timeout"]
        assert "remote_poll_seconds" in caplog.text
        assert "allowed_country_codes" in caplog.text

    def test_null_values_use_defaults(self):
        cfg = GatekeeperConfig.from_dict({"unlock_code_hash_hex": None, "allowed_country_codes": None})
        assert cfg.unlock_code_hash_hex == ""
        assert cfg.allowed_country_codes == ["EG"]

    def test_non_positive_timeout_uses_default(self):
        assert GatekeeperConfig(request_timeout=0).request_timeout == DEFAULTS["request_timeout"]
        assert GatekeeperConfig(request_timeout=2).request_timeout == 2.0

    def test_defaults_not_shared_between_instances(self):
        cfg = GatekeeperConfig.from_dict({"geo_fallbacks": 1})
        cfg.geo_fallbacks.append("x")
        assert DEFAULTS["geo_fallbacks"] == ["locale_country", "timezone_hint"]


class TestLoadSave:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "none.json") == DEFAULTS

    def test_malformed_file_gives_defaults(self, tmp_path):
        path = tmp_path / "gatekeeper.json"
        path.write_text("{", encoding="utf-8")
        assert load_settings(path) == DEFAULTS

    def test_partial_file_merged_over_defaults(self, tmp_path):
        path = tmp_path / "gatekeeper.json"
        path.write_text(json.dumps({"remote_fail_closed": True}), encoding="utf-8")
        cfg = load_config(path)
        assert cfg.remote_fail_closed is True
        assert cfg.geo_ip_url == DEFAULTS["geo_ip_url"]

    def test_round_trip(self, tmp_path):
        path = tmp_path / "sub" / "gatekeeper.json"
        save_config(GatekeeperConfig(allowed_country_codes=["FR"], remote_poll_seconds=42), path)
        cfg = load_config(path)
        assert cfg.allowed_country_codes == ["FR"]
        assert cfg.remote_poll_seconds == 42.0

    def test_mistyped_file_still_loads(self, tmp_path):
        path = tmp_path / "gatekeeper.json"
        path.write_text(json.dumps({"remote_poll_seconds": "fast", "remote_control_url": "https://x"}),
                        encoding="utf-8")
        cfg = load_config(path)
        assert cfg.remote_poll_seconds == DEFAULTS["remote_poll_seconds"]
        assert cfg.remote_control_url == "https://x"

    def test_non_object_file_gives_defaults(self, tmp_path):
        path = tmp_path / "gatekeeper.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert load_settings(path) == DEFAULTS
