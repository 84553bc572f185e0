from __future__ import annotations

from sheet_issue_sync.services.renderer import (
    RenderedContent,
    build_context,
    build_row_view,
    render_row,
)

NOW = "2024-05-01T09:30:00.000Z"


def test_build_row_view_uses_absolute_column_letters():
    assert build_row_view(["x", "y", "z"], 0) == {"A": "x", "B": "y", "C": "z"}
    # range starting at Y crosses into AA
    assert build_row_view(["y", "z", "aa"], 24) == {"Y": "y", "Z": "z", "AA": "aa"}


def test_build_row_view_covers_only_present_cells():
    view = build_row_view(["only"], 3)
    assert view == {"D": "only"}


def test_build_row_view_stringifies_cells():
    assert build_row_view([None, 3], 0) == {"A": "", "B": "3"}


def test_build_context_shape():
    ctx = build_context({"A": "x"}, 7, NOW)
    assert ctx == {"row": {"A": "x"}, "rowIndex": 7, "now": NOW}


def test_render_row_title_and_body():
    content = render_row(
        "Row {{rowIndex}}: {{row.A}}",
        "Owner: {{row.B}}\nSynced at {{now}}",
        {"A": "Fix login", "B": "alice"},
        4,
        NOW,
    )
    assert content == RenderedContent(
        title="Row 4: Fix login",
        body=f"Owner: alice\nSynced at {NOW}",
    )


def test_render_row_blank_title_is_none():
    assert render_row("{{row.A}}", "body", {"A": ""}, 2, NOW) is None
    assert render_row("  {{row.Z}}  ", "body", {"A": "x"}, 2, NOW) is None


def test_render_row_missing_placeholder_renders_empty():
    content = render_row("T {{row.Q}}", "{{row.Q}}", {"A": "x"}, 2, NOW)
    assert content is not None
    assert content.title == "T "
    assert content.body == ""


def test_render_row_triple_mustache_is_unescaped():
    content = render_row("{{{row.A}}}", "{{{row.A}}}", {"A": "a < b & c"}, 2, NOW)
    assert content is not None
    assert content.title == "a < b & c"


def test_render_row_is_deterministic():
    args = ("{{row.A}} {{rowIndex}}", "{{now}}", {"A": "x"}, 9, NOW)
    assert render_row(*args) == render_row(*args)
