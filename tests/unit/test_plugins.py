"""Unit tests for the built-in editor plugins."""
from pathlib import Path

import pytest

from beatkit.cues.preferences import STORAGE_KEY, CuePreferences, CueTypePreference, save_cue_preferences
from beatkit.plugins.capture import QuickCapturePlugin
from beatkit.plugins.contd import AddContdsPlugin, CleanContdsPlugin
from beatkit.plugins.cues import CueManagerPlugin
from beatkit.plugins.keywords import KeywordsPlugin
from beatkit.plugins.notepad import FloatingNotepadPlugin
from beatkit.plugins.notes_bin import NotesBinPlugin
from beatkit.plugins.style import ElementsOfStylePlugin
from beatkit.plugins.word_count import WordCountPlugin
from tests.conftest import CUE_SCRIPT, SAMPLE_SCRIPT, make_host, settle


@pytest.mark.unit
class TestKeywordsPlugin:
    def test_activate_opens_panel(self, clock):
        host = make_host(SAMPLE_SCRIPT, clock=clock)
        plugin = KeywordsPlugin()
        plugin.activate(host, host.loop)
        assert "Keywords" in host.menu
        assert host.menu["Keywords"][0] == ("cmd", "ctrl", "k")
        assert len(host.windows) == 1
        assert "mystery" in host.windows[0].html
        assert len(host.highlights) == 3

    def test_no_tags_alerts(self, clock):
        host = make_host("INT. HOUSE - DAY\n\nNothing tagged.\n", clock=clock)
        plugin = KeywordsPlugin()
        plugin.activate(host, host.loop)
        assert host.windows == []
        assert host.alerts[0][0] == "No Tags Found"

    def test_panel_follows_edits(self, clock):
        host = make_host(SAMPLE_SCRIPT, clock=clock)
        plugin = KeywordsPlugin()
        plugin.activate(host, host.loop)
        host.add_string("[[#fresh]]\n", 0)
        settle(host, clock)
        assert "fresh" in host.windows[0].html

    def test_call_bridge(self, clock):
        host = make_host(SAMPLE_SCRIPT, clock=clock)
        plugin = KeywordsPlugin()
        plugin.activate(host, host.loop)
        plugin.call("pill_click", "jonah")
        assert host.scrolls == [SAMPLE_SCRIPT.index("@jonah")]
        with pytest.raises(ValueError):
            plugin.call("close")

    def test_closing_window_clears_highlights(self, clock):
        host = make_host(SAMPLE_SCRIPT, clock=clock)
        plugin = KeywordsPlugin()
        plugin.activate(host, host.loop)
        host.windows[0].close()
        assert host.highlights == {}
        assert plugin.session.closed
        with pytest.raises(RuntimeError):
            plugin.call("refresh")

    def test_menu_toggles_and_reopens(self, clock):
        host = make_host(SAMPLE_SCRIPT, clock=clock)
        plugin = KeywordsPlugin()
        plugin.activate(host, host.loop)
        plugin.toggle()
        assert host.windows[0].visible is False
        host.windows[0].close()
        plugin.toggle()
        assert len(host.windows) == 2
        assert host.windows[1].is_open

    def test_deactivate(self, clock):
        host = make_host(SAMPLE_SCRIPT, clock=clock)
        plugin = KeywordsPlugin()
        plugin.activate(host, host.loop)
        plugin.deactivate()
        assert not host.windows[0].is_open
        assert host.highlights == {}


@pytest.mark.unit
class TestContdPlugins:
    def test_add(self):
        host = make_host("\nMARA\nHello.\n\nMARA\nAgain.\n")
        plugin = AddContdsPlugin()
        plugin.activate(host, host.loop)
        assert "Add (CONT'D)s" in host.menu
        assert plugin.run() == 1
        assert "MARA (CONT'D)" in host.text()

    def test_clean_strict_and_lenient(self):
        text = "\nMARA\nHi.\n\nJONAH\nYo.\n\nMARA (CONT'D)\nHi.\n"
        lenient = CleanContdsPlugin(strict=False)
        host = make_host(text)
        lenient.activate(host, host.loop)
        assert lenient.run() == 0

        strict = CleanContdsPlugin()
        host = make_host(text)
        strict.activate(host, host.loop)
        assert strict.run() == 1
        assert "(CONT'D)" not in host.text()

    def test_label_from_config(self, monkeypatch):
        monkeypatch.setenv("BEATKIT_CONTD_LABEL", "SUITE")
        host = make_host("\nMARA\nHello.\n\nMARA\nAgain.\n")
        plugin = AddContdsPlugin()
        plugin.activate(host, host.loop)
        plugin.run()
        assert "MARA (SUITE)" in host.text()


@pytest.mark.unit
class TestCueManagerPlugin:
    def _activate(self, text=CUE_SCRIPT, prefs=None, clock=None):
        host = make_host(text, clock=clock)
        if prefs is not None:
            save_cue_preferences(host, prefs)
        plugin = CueManagerPlugin()
        plugin.activate(host, host.loop)
        return host, plugin

    def test_detects_on_activate(self):
        _, plugin = self._activate()
        assert plugin.cue_types() == ["ALL", "SOUND", "LIGHT", "MUSIC", "VIDEO"]
        assert len(plugin.detection.cues) == 5

    def test_new_types_saved(self):
        host, plugin = self._activate(CUE_SCRIPT + "SMOKE: Haze\n")
        stored = CuePreferences.from_stored(host.get_user_default(STORAGE_KEY))
        assert stored.for_type("SMOKE") is not None

    def test_highlights_follow_preferences(self):
        prefs = CuePreferences()
        prefs.types["SOUND"] = CueTypePreference(color="#3498db", highlight=True)
        host, plugin = self._activate(prefs=prefs)
        assert host.highlights == {
            (CUE_SCRIPT.index("SOUND: Thunder"), 5): "#3498db",
            (CUE_SCRIPT.index("!SOUND") + 1, 5): "#3498db",
        }
        plugin.deactivate()
        assert host.highlights == {}

    def test_renumber(self):
        host, plugin = self._activate()
        assert plugin.renumber("LIGHT") == 1
        assert "LIGHT (cue 1): Blackout" in host.text()
        assert plugin.detection.cues[1].number == "1"

    def test_export(self, tmp_path: Path):
        host, plugin = self._activate()
        target = tmp_path / "cues.html"
        assert plugin.export("html", str(target)) is True
        assert "Thunder rolls" in target.read_text()

    def test_apply_preferences_wraps_hidden(self):
        host, plugin = self._activate()
        new = plugin.prefs.model_copy(deep=True)
        new.types["VIDEO"] = CueTypePreference(color="#9b59b6", hide=True)
        assert plugin.apply_preferences(new) == 1
        assert "[[VIDEO: Rain loop]]" in host.text()
        assert CuePreferences.from_stored(host.get_user_default(STORAGE_KEY)).hides("VIDEO")

    def test_refresh_debounced_on_edit(self, clock):
        host, plugin = self._activate(clock=clock)
        host.add_string("SMOKE: Haze\n", len(host.text()))
        host.loop.run_pending()
        assert "SMOKE" not in plugin.detection.types
        settle(host, clock)
        assert "SMOKE" in plugin.detection.types


@pytest.mark.unit
class TestWordCountPlugin:
    def test_counts_session_words(self):
        host = make_host("one two")
        plugin = WordCountPlugin()
        plugin.activate(host, host.loop)
        host.add_string(" three four", len(host.text()))
        host.loop.run_pending()
        assert plugin.last_state.session == 2
        assert plugin.reset().session == 0

    def test_goal_alert_once(self):
        host = make_host("")
        plugin = WordCountPlugin()
        plugin.activate(host, host.loop)
        plugin.set_goal(1)
        host.add_string("word", 0)
        host.loop.run_pending()
        host.add_string(" more", len(host.text()))
        host.loop.run_pending()
        assert [a[0] for a in host.alerts] == ["Goal Reached"]

    def test_progress(self):
        host = make_host("Act one.\n# BONEYARD\nold words here")
        plugin = WordCountPlugin()
        plugin.activate(host, host.loop)
        assert plugin.progress().total == 2


@pytest.mark.unit
class TestElementsOfStylePlugin:
    TEXT = "\nMARA\nI really think it is quickly changing.\n"

    def test_highlights_and_navigation(self):
        host = make_host(self.TEXT)
        plugin = ElementsOfStylePlugin()
        plugin.activate(host, host.loop)
        assert host.highlights
        token = plugin.next()
        assert host.scrolls == [token.position]
        assert host.selections == [(token.position, token.length)]

    def test_toggle_category_refreshes(self):
        host = make_host(self.TEXT)
        plugin = ElementsOfStylePlugin()
        plugin.activate(host, host.loop)
        quickly = (self.TEXT.index("quickly"), len("quickly"))
        assert quickly in host.highlights
        assert plugin.toggle_category("adverbs") is False
        assert quickly not in host.highlights

    def test_deactivate_clears(self):
        host = make_host(self.TEXT)
        plugin = ElementsOfStylePlugin()
        plugin.activate(host, host.loop)
        plugin.deactivate()
        assert host.highlights == {}


@pytest.mark.unit
class TestQuickCapturePlugin:
    def test_capture_closes_form(self):
        host = make_host()
        plugin = QuickCapturePlugin()
        plugin.activate(host, host.loop)
        assert host.menu["Quick Capture"][0] == ("cmd", "alt", "2")
        host.menu["Quick Capture"][1]()
        assert len(host.windows) == 1
        assert plugin.capture("  a new idea ") is True
        assert host.notepad_text() == "a new idea\n\n"
        assert not host.windows[0].is_open

    def test_blank_idea_keeps_form(self):
        host = make_host()
        plugin = QuickCapturePlugin()
        plugin.activate(host, host.loop)
        plugin.open()
        assert plugin.capture("   ") is False
        assert host.windows[0].is_open


@pytest.mark.unit
class TestNotesBinPlugin:
    TEXT = "INT. HOUSE - DAY\n\nMara waits.\n"

    def test_menu_items(self):
        host = make_host(self.TEXT)
        NotesBinPlugin().activate(host, host.loop)
        assert host.menu["Notes Bin"][0] == ("cmd", "alt", "z")
        assert host.menu["Cut to Bin"][0] == ("cmd", "alt", "x")
        assert host.menu["Copy to Bin"][0] == ("cmd", "alt", "c")

    def test_cut_selection_from_menu(self):
        host = make_host(self.TEXT)
        plugin = NotesBinPlugin()
        plugin.activate(host, host.loop)
        plugin.toggle()
        host.select_range(self.TEXT.index("Mara"), len("Mara waits."))
        host.menu["Cut to Bin"][1]()
        assert host.text() == "INT. HOUSE - DAY\n\n\n"
        assert [n.text for n in plugin.bin] == ["Mara waits."]
        assert "Mara waits." in host.windows[0].html

    def test_copy_without_selection_is_noop(self):
        host = make_host(self.TEXT)
        plugin = NotesBinPlugin()
        plugin.activate(host, host.loop)
        assert plugin.copy_to_bin() is None
        assert len(plugin.bin) == 0

    def test_window_toggles(self):
        host = make_host(self.TEXT)
        plugin = NotesBinPlugin()
        plugin.activate(host, host.loop)
        assert plugin.toggle() is True
        assert plugin.toggle() is False
        assert host.windows[0].visible is False
        host.windows[0].close()
        assert plugin.window is None

    def test_search_filters_window(self):
        host = make_host(self.TEXT)
        plugin = NotesBinPlugin()
        plugin.activate(host, host.loop)
        plugin.toggle()
        plugin.call("add", "rain <loud>")
        plugin.call("add", "coffee")
        assert [n.text for n in plugin.call("search", "rain")] == ["rain <loud>"]
        html = host.windows[0].html
        assert "rain &lt;loud&gt;" in html
        assert "coffee" not in html

    def test_file_round_trip(self, tmp_path: Path):
        host = make_host(self.TEXT)
        plugin = NotesBinPlugin()
        plugin.activate(host, host.loop)
        plugin.add("one")
        plugin.add("two")
        out = tmp_path / "bin.txt"
        assert plugin.call("export_file", str(out)) == 2
        assert out.read_text(encoding="utf-8") == "one\n---\ntwo\n"

        other = make_host(self.TEXT)
        fresh = NotesBinPlugin()
        fresh.activate(other, other.loop)
        assert fresh.call("import_file", str(out)) == 2
        assert [n.text for n in fresh.bin] == ["one", "two"]

    def test_unknown_bridge_method(self):
        host = make_host(self.TEXT)
        plugin = NotesBinPlugin()
        plugin.activate(host, host.loop)
        with pytest.raises(ValueError):
            plugin.call("cut_to_bin")


NOTEPAD = "# Act one\nopening\n## Beat\nmiddle\n# Act two\nending"


@pytest.mark.unit
class TestFloatingNotepadPlugin:
    def test_menu_opens_window_with_notepad(self):
        host = make_host(notepad="ideas & <stuff>")
        plugin = FloatingNotepadPlugin()
        plugin.activate(host, host.loop)
        assert host.menu["Floating Notepad"][0] == ("cmd", "alt", "3")
        host.menu["Floating Notepad"][1]()
        assert "ideas &amp; &lt;stuff&gt;" in host.windows[0].html

    def test_sync_writes_notepad_without_echo(self):
        host = make_host(notepad="old")
        plugin = FloatingNotepadPlugin()
        plugin.activate(host, host.loop)
        plugin.toggle()
        opened = host.windows[0].html
        plugin.call("sync", "typed in window")
        host.loop.run_pending()
        assert host.notepad_text() == "typed in window"
        assert host.windows[0].html == opened

    def test_external_notepad_edit_refreshes_window(self):
        host = make_host(notepad="old")
        plugin = FloatingNotepadPlugin()
        plugin.activate(host, host.loop)
        plugin.toggle()
        host.set_notepad_text("changed elsewhere")
        host.loop.run_pending()
        assert "changed elsewhere" in host.windows[0].html

    def test_heading_jumps(self):
        host = make_host(notepad=NOTEPAD)
        plugin = FloatingNotepadPlugin()
        plugin.activate(host, host.loop)
        plugin.toggle()
        assert plugin.call("next_heading") == 4
        assert plugin.call("next_heading") is None
        assert plugin.call("previous_heading") == 0
        assert plugin.call("next_heading", 2) == 2
        assert host.windows[0].scripts == ["setCursor(4)", "setCursor(0)", "setCursor(2)"]

    def test_jump_starts_from_cursor(self):
        host = make_host(notepad=NOTEPAD)
        plugin = FloatingNotepadPlugin()
        plugin.activate(host, host.loop)
        plugin.call("set_cursor", 3)
        assert plugin.previous_heading() == 0
        assert plugin.cursor_line == 0
