"""Unit tests for beatkit/tags/session.py"""
import pytest

from beatkit.runtime.loop import ManualClock
from beatkit.tags.colors import ContrastParams, ensure_contrast
from beatkit.tags.navigator import NavigationKind
from beatkit.tags.session import KeywordsSession
from beatkit.tags.view import render_html
from tests.conftest import SAMPLE_SCRIPT, make_host, settle

DEFAULT = "#fefbc0"


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def host(clock):
    return make_host(SAMPLE_SCRIPT, clock=clock)


@pytest.fixture
def session(host):
    s = KeywordsSession(host, host.loop, ContrastParams())
    host.on_text_change(s.on_text_change)
    host.on_notepad_change(s.on_notepad_change)
    s.refresh()
    return s


def _mystery_positions():
    first = SAMPLE_SCRIPT.index("#mystery")
    return first, SAMPLE_SCRIPT.index("#mystery", first + 1)


@pytest.mark.unit
class TestRefresh:
    def test_highlights_every_document_occurrence(self, host, session):
        dark = ensure_contrast(DEFAULT, "#ffffff", ContrastParams())
        first, second = _mystery_positions()
        assert host.highlights[(first, len("#mystery"))] == dark
        assert host.highlights[(second, len("#mystery"))] == dark
        assert len(host.highlights) == 3

    def test_burst_of_edits_refreshes_once(self, host, clock, session):
        views = []
        session.subscribe(views.append)
        for _ in range(3):
            host.add_string("x", 0)
            host.loop.run_pending()
            clock.advance(0.5)
            host.loop.run_pending()
        assert views == []
        settle(host, clock)
        assert len(views) == 1

    def test_highlights_follow_edits(self, host, clock, session):
        host.add_string("12345", 0)
        settle(host, clock)
        first, _ = _mystery_positions()
        assert (first + 5, len("#mystery")) in host.highlights
        assert (first, len("#mystery")) not in host.highlights

    def test_notepad_change_triggers_refresh(self, host, clock, session):
        host.set_notepad_text("remember #fresh")
        settle(host, clock)
        assert "fresh" in session.index

    def test_failed_scan_keeps_previous_state(self, host, session, monkeypatch):
        before = session.index
        highlights = dict(host.highlights)

        def broken(*args, **kwargs):
            raise RuntimeError("scanner exploded")

        monkeypatch.setattr("beatkit.tags.session.scan", broken)
        assert session.refresh() is False
        assert session.index is before
        assert host.highlights == highlights

    def test_favorites_pruned_on_rescan(self, host, session):
        session.add_favorite("jonah")
        assert "jonah" in session.favorites
        host.load_text(SAMPLE_SCRIPT.replace("[[@jonah lies]]", ""))
        session.refresh()
        assert "jonah" not in session.favorites
        assert host.get_document_setting("favoriteTags") == []

    def test_add_favorite_ignores_unknown_tag(self, session):
        session.add_favorite("ghost")
        assert len(session.favorites) == 0


@pytest.mark.unit
class TestNavigation:
    def test_scrolls_round_robin(self, host, session):
        first, second = _mystery_positions()
        for _ in range(3):
            session.navigate("mystery")
        assert host.scrolls == [first, second, first]

    def test_flash_ends_highlighted(self, host, clock, session):
        first, _ = _mystery_positions()
        span = (first, len("#mystery"))
        session.navigate("mystery")
        for _ in range(10):
            clock.advance(0.25)
            host.loop.run_pending()
        assert span in host.highlights
        assert host.reformatted.count(span) == 2

    def test_notepad_only_alerts(self, host, clock, session):
        host.set_notepad_text("#idea")
        settle(host, clock)
        outcome = session.navigate("idea")
        assert outcome.kind is NavigationKind.NOTEPAD_ONLY
        assert host.alerts[-1][0] == "Notepad only"
        assert host.scrolls == []

    def test_unknown_tag_is_noop(self, host, session):
        assert session.navigate("ghost").kind is NavigationKind.MISSING
        assert host.scrolls == [] and host.alerts == []

    def test_pill_click_marks_active(self, session):
        session.pill_click("jonah")
        assert session.active_tag == "jonah"
        session.pill_mouse_leave("jonah")
        assert session.active_tag is None


@pytest.mark.unit
class TestColorsAndTheme:
    def test_preview_then_finalize(self, host, session):
        first, _ = _mystery_positions()
        session.open_color_picker("mystery", 10, 20)
        assert session.picker.tag == "mystery"

        session.preview_tag_color("#000080")
        assert host.highlights[(first, len("#mystery"))] == "#000080"
        assert host.get_user_default("tagColors") is None

        session.finalize_tag_color("#000080")
        assert host.get_user_default("tagColors") == {"mystery": "#000080"}
        assert session.picker is None

    def test_picker_ignores_unknown_tag(self, session):
        session.open_color_picker("ghost")
        assert session.picker is None

    def test_theme_toggle_reapplies_highlights(self, host, session):
        first, _ = _mystery_positions()
        dark = host.highlights[(first, len("#mystery"))]
        assert session.toggle_theme() is False
        light = host.highlights[(first, len("#mystery"))]
        assert light == ensure_contrast(DEFAULT, "#000000", ContrastParams())
        assert light != dark
        assert session.render_state().theme == "light"


@pytest.mark.unit
class TestBridgeAndClose:
    def test_dispatch_whitelisted(self, session):
        session.dispatch("add_favorite", ["mystery"])
        assert session.render_state().favorites[0].name == "mystery"

    @pytest.mark.parametrize("method", ["close", "_emit", "refresh_all", "__init__"])
    def test_dispatch_rejects_others(self, session, method):
        with pytest.raises(ValueError):
            session.dispatch(method)

    def test_dismissed_entries_hidden(self, session):
        key = session.render_state().notes[0].key
        session.toggle_dismissed(key)
        assert session.render_state().notes[0].dismissed is True
        session.set_hide_dismissed(True)
        assert key not in [row.key for row in session.render_state().notes]

    def test_close_removes_highlights_and_timers(self, host, clock, session):
        session.navigate("mystery")
        session.close()
        assert host.highlights == {}
        clock.advance(5)
        host.loop.run_pending()
        assert host.highlights == {}
        assert session.refresh() is False


@pytest.mark.unit
class TestFlashTimers:
    def test_fired_handles_are_dropped(self, host, clock, session):
        for _ in range(200):
            session.navigate("mystery")
            for _ in range(6):
                clock.advance(0.25)
                host.loop.run_pending()
        assert len(session._timers) <= 1
        assert not any(t.pending for t in session._timers)

    def test_new_navigation_cancels_running_flash(self, host, clock, session):
        first, second = _mystery_positions()
        session.navigate("mystery")
        clock.advance(0.25)
        host.loop.run_pending()
        assert (first, len("#mystery")) not in host.highlights
        session.navigate("mystery")
        assert (first, len("#mystery")) in host.highlights
        for _ in range(10):
            clock.advance(0.25)
            host.loop.run_pending()
        assert host.reformatted.count((first, len("#mystery"))) == 1
        assert host.reformatted.count((second, len("#mystery"))) == 2

    def test_refresh_cancels_running_flash(self, host, clock, session):
        first, _ = _mystery_positions()
        old_span = (first, len("#mystery"))
        session.navigate("mystery")
        clock.advance(0.25)
        host.loop.run_pending()
        host.add_string("12345", 0)
        session.refresh()
        for _ in range(10):
            clock.advance(0.25)
            host.loop.run_pending()
        assert old_span not in host.highlights
        assert (first + 5, len("#mystery")) in host.highlights
        assert host.reformatted.count(old_span) == 1


ENTRY_TEXT = "Action. [[remember #plot]]\n\n= synopsis line\n"


@pytest.mark.unit
class TestGotoEntry:
    @pytest.fixture
    def entry_host(self, clock):
        return make_host(ENTRY_TEXT, notepad="pad idea", clock=clock)

    @pytest.fixture
    def entry_session(self, entry_host):
        s = KeywordsSession(entry_host, entry_host.loop, ContrastParams())
        s.refresh()
        return s

    def _key(self, session, kind):
        return next(row.key for row in session.render_state().notes if row.kind == kind)

    def test_document_entry_scrolls(self, entry_host, entry_session):
        assert entry_session.dispatch("goto_entry", [self._key(entry_session, "note")]) is True
        assert entry_session.goto_entry(self._key(entry_session, "synopsis")) is True
        assert entry_host.scrolls == [ENTRY_TEXT.index("[["), ENTRY_TEXT.index("= synopsis")]

    def test_notepad_entry_alerts(self, entry_host, entry_session):
        assert entry_session.goto_entry(self._key(entry_session, "notepad")) is False
        assert entry_host.scrolls == []
        assert entry_host.alerts[-1][0] == "Notepad only"

    def test_unknown_key_is_noop(self, entry_host, entry_session):
        assert entry_session.goto_entry("note:missing:0") is False
        assert entry_host.scrolls == [] and entry_host.alerts == []

    def test_rendered_entries_link_to_source(self, entry_session):
        html = render_html(entry_session.render_state())
        key = self._key(entry_session, "note")
        assert f"Beat.call(&quot;goto_entry&quot;, &quot;{key}&quot;)" in html
