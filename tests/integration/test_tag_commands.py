"""Integration tests for tag commands."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
from typer.testing import CliRunner

from ruuvi_panel.app import app
from ruuvi_panel.config.manager import ConfigManager
from ruuvi_panel.config.models import PanelProfile

runner = CliRunner()

GW = ["--url", "http://gw.local:8080"]
FRIDGE = "AA:BB:CC:DD:EE:02"


class TestTagReads:
    def test_list_json(self, loaded_gateway):
        result = runner.invoke(app, ["tags", "list", *GW, "-f", "json"])
        assert result.exit_code == 0
        records = json.loads(result.output)
        assert [r["mac"] for r in records] == ["AA:BB:CC:DD:EE:01", FRIDGE]
        assert records[0]["name"] == "Sauna"
        assert records[0]["freshness"] == "live"
        assert records[1]["name"] == "RuuviTag EE:02"
        assert records[1]["enabled"] is False
        # Old readings are still listed
        assert records[1]["freshness"] == "stale"

    def test_list_enabled_only(self, loaded_gateway):
        result = runner.invoke(app, ["tags", "list", "--enabled", *GW, "-f", "json"])
        assert result.exit_code == 0
        assert [r["name"] for r in json.loads(result.output)] == ["Sauna"]

    def test_list_csv(self, loaded_gateway):
        result = runner.invoke(app, ["tags", "list", *GW, "-f", "csv"])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].startswith(",Name,MAC,Enabled")
        assert lines[1].startswith("live,Sauna,AA:BB:CC:DD:EE:01,yes")

    def test_list_table(self, loaded_gateway):
        result = runner.invoke(app, ["tags", "list", *GW])
        assert result.exit_code == 0
        assert "Sauna" in result.output

    def test_list_empty(self, gw, config_doc):
        gw.get("/api/config").respond(200, json=config_doc)
        gw.get("/api/tags").respond(200, json=[])
        result = runner.invoke(app, ["tags", "list", *GW])
        assert result.exit_code == 0
        assert "No tags discovered yet" in result.output

    def test_show(self, loaded_gateway):
        result = runner.invoke(app, ["tags", "show", "aa:bb:cc:dd:ee:01", *GW, "-f", "json"])
        assert result.exit_code == 0
        record = json.loads(result.output)
        assert record["name"] == "Sauna"
        assert record["temperature"] == 78.5

    def test_show_undiscovered(self, loaded_gateway):
        result = runner.invoke(app, ["tags", "show", "AA:BB:CC:DD:EE:99", *GW, "-f", "json"])
        assert result.exit_code == 0
        record = json.loads(result.output)
        assert record["updated"] == "not discovered"
        assert record["name"] == "RuuviTag EE:99"

    def test_gateway_unreachable(self, gw):
        gw.get("/api/config").mock(side_effect=httpx.ConnectError("refused"))
        gw.get("/api/tags").mock(side_effect=httpx.ConnectError("refused"))
        result = runner.invoke(app, ["tags", "list", *GW])
        assert result.exit_code == 2

    def test_bad_format(self, loaded_gateway):
        result = runner.invoke(app, ["tags", "list", *GW, "-f", "xml"])
        assert result.exit_code == 1

    def test_no_gateway_configured(self):
        result = runner.invoke(app, ["tags", "list"])
        assert result.exit_code == 6


class TestTagMutations:
    def test_enable(self, loaded_gateway):
        route = loaded_gateway.post("/api/tags/enable").respond(
            200, json={"success": True, "enabled_tags": ["AA:BB:CC:DD:EE:01", FRIDGE]},
        )
        result = runner.invoke(app, ["tags", "enable", "aa-bb-cc-dd-ee-02", *GW])
        assert result.exit_code == 0
        assert json.loads(route.calls.last.request.content) == {"mac": FRIDGE, "enabled": True}
        assert "enabled" in result.output
        assert "Restart required" in result.output

    def test_disable(self, loaded_gateway):
        route = loaded_gateway.post("/api/tags/enable").respond(
            200, json={"success": True, "enabled_tags": []},
        )
        result = runner.invoke(app, ["tags", "disable", "AA:BB:CC:DD:EE:01", *GW])
        assert result.exit_code == 0
        assert json.loads(route.calls.last.request.content)["enabled"] is False

    def test_rename(self, loaded_gateway):
        route = loaded_gateway.post("/api/tags/name").respond(
            200, json={"success": True, "tag_names": {FRIDGE: "Fridge"}},
        )
        result = runner.invoke(app, ["tags", "rename", FRIDGE, "Fridge", *GW])
        assert result.exit_code == 0
        assert json.loads(route.calls.last.request.content) == {"mac": FRIDGE, "name": "Fridge"}
        assert "Fridge" in result.output

    def test_edit_keeps_unset_values(self, loaded_gateway):
        name_route = loaded_gateway.post("/api/tags/name").respond(
            200, json={"success": True, "tag_names": {"AA:BB:CC:DD:EE:01": "Sauna"}},
        )
        enable_route = loaded_gateway.post("/api/tags/enable").respond(
            200, json={"success": True, "enabled_tags": []},
        )
        result = runner.invoke(app, ["tags", "edit", "AA:BB:CC:DD:EE:01", "--disable", *GW])
        assert result.exit_code == 0
        assert json.loads(name_route.calls.last.request.content)["name"] == "Sauna"
        assert json.loads(enable_route.calls.last.request.content)["enabled"] is False

    def test_edit_partial_failure(self, loaded_gateway):
        loaded_gateway.post("/api/tags/name").respond(
            200, json={"success": True, "tag_names": {FRIDGE: "Fridge"}},
        )
        loaded_gateway.post("/api/tags/enable").respond(500, text="Failed to write config file")
        result = runner.invoke(app, [
            "tags", "edit", FRIDGE, "--name", "Fridge", "--enable", *GW,
        ])
        assert result.exit_code == 8

    def test_enable_rejected(self, loaded_gateway):
        loaded_gateway.post("/api/tags/enable").respond(400, text="Invalid JSON")
        result = runner.invoke(app, ["tags", "enable", FRIDGE, *GW])
        assert result.exit_code == 2

    def test_enable_and_restart(self, loaded_gateway, isolated_config: Path):
        ConfigManager(config_path=isolated_config).add_profile(
            PanelProfile(name="home", url="http://gw.local:8080", restart_grace=0),
        )
        loaded_gateway.post("/api/tags/enable").respond(
            200, json={"success": True, "enabled_tags": ["AA:BB:CC:DD:EE:01", FRIDGE]},
        )
        restart_route = loaded_gateway.post("/api/restart").respond(200, json={"restarting": True})
        result = runner.invoke(app, ["tags", "enable", FRIDGE, "--restart", "-g", "home"])
        assert result.exit_code == 0
        assert restart_route.call_count == 1
        assert "Gateway reloaded" in result.output
        assert "Restart required" not in result.output
