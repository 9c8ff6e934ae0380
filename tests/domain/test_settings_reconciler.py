"""Tests for SettingsReconciler service."""

from monitorhub.domain import MonitorSetting, SettingsReconciler, split_lines


class TestMerge:
    """Tests for overlaying persisted selections on defaults."""

    def test_persisted_value_overrides_default(self, default_settings):
        """Test a persisted selection replaces the default."""
        merged = SettingsReconciler().merge(default_settings, {"baudrate": "115200"})

        assert merged["baudrate"].selected_value == "115200"
        assert merged["parity"].selected_value == "none"

    def test_unknown_persisted_id_skipped(self, default_settings):
        """Test persisted ids the daemon no longer reports are skipped."""
        merged = SettingsReconciler().merge(default_settings, {"flow": "rts"})

        assert set(merged) == {"baudrate", "parity"}

    def test_disallowed_persisted_value_skipped(self, default_settings):
        """Test persisted values outside the allowed set keep the default."""
        merged = SettingsReconciler().merge(default_settings, {"baudrate": "12"})

        assert merged["baudrate"].selected_value == "9600"

    def test_defaults_not_mutated(self, default_settings):
        """Test merging returns a new map."""
        SettingsReconciler().merge(default_settings, {"baudrate": "115200"})

        assert default_settings["baudrate"].selected_value == "9600"


class TestApply:
    """Tests for applying caller updates."""

    def test_apply_full_setting_object(self, default_settings):
        """Test an update in wire shape is applied."""
        result = SettingsReconciler().apply(
            default_settings, {"baudrate": {"id": "baudrate", "selectedValue": "115200"}}
        )

        assert result.settings["baudrate"].selected_value == "115200"
        assert result.applied == ("baudrate",)
        assert result.ignored == ()

    def test_apply_bare_value(self, default_settings):
        """Test a bare value is accepted."""
        result = SettingsReconciler().apply(default_settings, {"parity": "odd"})

        assert result.settings["parity"].selected_value == "odd"

    def test_unknown_id_ignored_and_reported(self, default_settings):
        """Test unknown ids are reported, not applied."""
        result = SettingsReconciler().apply(default_settings, {"flow": "rts"})

        assert result.ignored == ("flow",)
        assert "flow" not in result.settings

    def test_disallowed_value_ignored(self, default_settings):
        """Test values outside the allowed set are ignored."""
        result = SettingsReconciler().apply(default_settings, {"baudrate": "123"})

        assert result.ignored == ("baudrate",)
        assert result.settings["baudrate"].selected_value == "9600"

    def test_missing_value_ignored(self, default_settings):
        """Test an entry without selectedValue is ignored."""
        result = SettingsReconciler().apply(default_settings, {"baudrate": {"id": "baudrate"}})

        assert result.ignored == ("baudrate",)

    def test_keys_never_dropped(self, default_settings):
        """Test keys absent from the update are kept as they are."""
        result = SettingsReconciler().apply(default_settings, {"baudrate": "115200"})

        assert result.settings["parity"] == default_settings["parity"]

    def test_free_form_setting_accepts_any_value(self):
        """Test non-enumerable settings accept any value."""
        current = {"label": MonitorSetting(id="label", kind="string", selected_value="")}
        result = SettingsReconciler().apply(current, {"label": "bench"})

        assert result.settings["label"].selected_value == "bench"

    def test_apply_is_idempotent(self, default_settings):
        """Test applying the same update twice equals applying it once."""
        reconciler = SettingsReconciler()
        update = {"baudrate": {"selectedValue": "115200"}, "parity": "even", "flow": "x"}

        once = reconciler.apply(default_settings, update).settings
        twice = reconciler.apply(once, update).settings

        assert once == twice


class TestSplitLines:
    """Tests for splitting device text into fragments."""

    def test_keeps_separators(self):
        """Test newlines stay attached to their line."""
        assert split_lines("a\nb\n") == ["a\n", "b\n"]

    def test_trailing_partial_line(self):
        """Test text after the last newline is its own fragment."""
        assert split_lines("a\nbc") == ["a\n", "bc"]

    def test_no_newline(self):
        """Test text without newline is a single fragment."""
        assert split_lines("abc") == ["abc"]

    def test_empty(self):
        """Test empty text yields nothing."""
        assert split_lines("") == []
